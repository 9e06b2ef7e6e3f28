import unittest

from ticker_identifier.core.errors import ProviderNotFoundError
from ticker_identifier.core.registry import ProviderRegistry


class ProviderRegistryTest(unittest.TestCase):
    def test_register_and_resolve(self):
        registry = ProviderRegistry()
        registry.register("corpus", "file", lambda: {"ok": True})

        self.assertTrue(registry.has("corpus", "file"))
        payload = registry.resolve("corpus", "file")
        self.assertEqual(payload["ok"], True)
        self.assertEqual(registry.list_types("corpus"), ["file"])

    def test_resolve_passes_keyword_arguments(self):
        registry = ProviderRegistry()
        registry.register("extraction", "mock", lambda provider_config: provider_config)

        self.assertEqual(registry.resolve("extraction", "mock", provider_config="cfg"), "cfg")

    def test_default_does_not_replace_injected_factory(self):
        registry = ProviderRegistry()
        registry.register("corpus", "fmp", lambda: "injected")
        registry.register_default("corpus", "fmp", lambda: "default")
        registry.register_default("corpus", "file", lambda: "file")

        self.assertEqual(registry.resolve("corpus", "fmp"), "injected")
        self.assertEqual(registry.resolve("corpus", "file"), "file")

    def test_unknown_provider(self):
        registry = ProviderRegistry()
        with self.assertRaises(ProviderNotFoundError):
            registry.resolve("corpus", "missing")
        self.assertFalse(registry.has("corpus", "missing"))
        self.assertEqual(registry.list_types("nothing"), [])


if __name__ == "__main__":
    unittest.main()
