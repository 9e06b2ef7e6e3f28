from __future__ import annotations

import unittest
from typing import List, Optional

from ticker_identifier.config import AppConfig, ExtractionConfig, default_extraction_providers
from ticker_identifier.core.errors import ExtractionError
from ticker_identifier.core.registry import ProviderRegistry
from ticker_identifier.modules.extraction.prompt_builder import QUERY_MARKER
from ticker_identifier.modules.extraction.service import EntityExtractionService
from ticker_identifier.settings import AppSettings


class _StubOracle:
    provider_id = "stub"

    def __init__(self, output: str = "", error: Optional[Exception] = None) -> None:
        self.output = output
        self.error = error
        self.prompts: List[str] = []
        self.api_keys: List[Optional[str]] = []

    async def extract(self, prompt: str, api_key: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        self.api_keys.append(api_key)
        if self.error is not None:
            raise self.error
        return self.output


def _settings(**keys) -> AppSettings:
    values = {
        "openai_api_key": None,
        "openrouter_api_key": None,
        "deepseek_api_key": None,
        "fmp_api_key": None,
    }
    values.update(keys)
    return AppSettings(**values)


def _service(settings: AppSettings, oracle=None, default_provider="openai"):
    config = AppConfig(
        extraction=ExtractionConfig(
            default_provider=default_provider,
            providers=default_extraction_providers(),
        )
    )
    registry = ProviderRegistry()
    if oracle is not None:
        registry.register("extraction", "openai_compatible", lambda provider_config: oracle)
    return EntityExtractionService(config=config, registry=registry, settings=settings)


class EntityExtractionServiceTest(unittest.IsolatedAsyncioTestCase):
    def test_default_provider_used_when_key_present(self):
        service = _service(_settings(openai_api_key="sk-openai"))
        provider_config, api_key = service.select_provider()

        self.assertEqual(provider_config.provider_id, "openai")
        self.assertEqual(api_key, "sk-openai")

    def test_falls_back_in_configured_order(self):
        service = _service(_settings(deepseek_api_key="sk-deepseek"))
        provider_config, api_key = service.select_provider()

        self.assertEqual(provider_config.provider_id, "deepseek")
        self.assertEqual(api_key, "sk-deepseek")

    def test_no_key_configured(self):
        service = _service(_settings())
        with self.assertRaises(ExtractionError) as ctx:
            service.select_provider()
        self.assertEqual(str(ctx.exception), "No API key configured")

    def test_keyless_provider_can_be_requested(self):
        service = _service(_settings())
        provider_config, api_key = service.select_provider("mock")

        self.assertEqual(provider_config.type, "mock")
        self.assertIsNone(api_key)

    async def test_extract_entities_parses_oracle_output(self):
        oracle = _StubOracle("Alibaba [HKEX/NYSE]")
        service = _service(_settings(openai_api_key="sk-openai"), oracle=oracle)

        entities = await service.extract_entities(
            "compare Alibaba in Hong Kong and US markets", language="english"
        )

        self.assertEqual([e.exchange for e in entities], ["HKEX", "NYSE"])
        self.assertEqual(oracle.api_keys, ["sk-openai"])
        self.assertTrue(
            oracle.prompts[0].strip().endswith(
                f"{QUERY_MARKER} compare Alibaba in Hong Kong and US markets"
            )
        )

    async def test_echoed_prompt_is_stripped(self):
        query = "Thoughts on HSBC"
        oracle = _StubOracle(f"{QUERY_MARKER} {query}\nHSBC\n")
        service = _service(_settings(openai_api_key="sk-openai"), oracle=oracle)

        self.assertEqual(await service.extract_raw(query), "HSBC")

    async def test_oracle_failure_is_normalized(self):
        oracle = _StubOracle(error=RuntimeError("rate limited"))
        service = _service(_settings(openai_api_key="sk-openai"), oracle=oracle)

        with self.assertRaises(ExtractionError) as ctx:
            await service.extract_entities("Apple")
        self.assertEqual(str(ctx.exception), "Failed to extract entities from query")

    async def test_empty_query_rejected_before_oracle_call(self):
        oracle = _StubOracle("Apple")
        service = _service(_settings(openai_api_key="sk-openai"), oracle=oracle)

        with self.assertRaises(ExtractionError):
            await service.extract_entities("   ")
        self.assertEqual(oracle.prompts, [])

    async def test_empty_oracle_output_yields_no_entities(self):
        service = _service(_settings(openai_api_key="sk-openai"), oracle=_StubOracle(""))
        self.assertEqual(await service.extract_entities("hello there"), [])

    async def test_offline_mock_provider(self):
        service = _service(_settings(), default_provider="mock")

        entities = await service.extract_entities("compare BABA and NVDA")

        self.assertEqual([e.symbol for e in entities], ["BABA", "NVDA"])


if __name__ == "__main__":
    unittest.main()
