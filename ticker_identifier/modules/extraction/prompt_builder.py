from __future__ import annotations

from typing import Optional

QUERY_MARKER = "Here is the user query:"
PROMPT_ECHO_MARKERS = ("Query --", QUERY_MARKER)
_LINE_SKIP_MARKERS = ("Query", "Response:", QUERY_MARKER, "Please follow these rules")

_LANGUAGE_HINTS = {
    "simplified-chinese": "The user usually writes in Simplified Chinese.",
    "traditional-chinese": "The user usually writes in Traditional Chinese.",
}

EXTRACTION_PROMPT = """
Extract the text segment that should be used to query for stock ticker.
For Chinese names of stocks that you have not heard of, output various pinyin for it.

Also, if the user specifies a particular stock exchange/market for a stock, include that information.
For Chinese stocks, be precise about which exchange (Shanghai/SSE or Shenzhen/SZSE) when mentioned.

If multiple entities in the query refer to the same company but with different exchanges, group them together.
{language_hint}
Please follow these rules for your response:
 - Directly output the extracted text without the "Response:" prefix
 - Do not include any explanation
 - Always respond with English, for Chinese names of stocks that you have not heard of, output various pinyin for it.
 - For chinese name of stocks you are fairly confident about, directly output the one English name you know of
 - If a specific exchange/market is mentioned or implied for a stock, format your response as "Stock Name [Exchange]" where Exchange can be: NYSE, NASDAQ, HKEX, SSE, SZSE
 - For Chinese stocks specifically, differentiate between Shanghai (SSE) and Shenzhen (SZSE) exchanges when possible
 - When multiple entities refer to the same company in different exchanges, use this format: "Stock Name [Exchange1/Exchange2]" or separate them with semicolons: "Stock Name [Exchange1]; Stock Name [Exchange2]"
 - If you know the full name of the entity, use the full name in the response

Examples:
Query -- Find me Apple stock price
Response:
Apple

Query -- 港股阿里巴巴上升趨勢
Response:
Alibaba [HKEX]

Query -- Thoughts on HSBC
Response:
HSBC

Query -- compare BABA and NVDA
Response:
BABA, NVDA

Query -- compare Alibaba 港股 and NVDA
Response:
Alibaba [HKEX], NVDA

Query -- compare Alibaba in Hong Kong and US markets
Response:
Alibaba [HKEX/NYSE]

Query -- 茅台股票
Response:
Kweichow Moutai

Query -- 中國石油A股和H股
Response:
PetroChina [SSE]; PetroChina [HKEX]

Query -- 中芯国际上海和香港股价对比
Response:
Semiconductor Manufacturing International Corporation [SSE]; Semiconductor Manufacturing International Corporation [HKEX]

Query -- 長實走勢圖
Response:
CK Hutchison

Query -- 中芯
Response:
Semiconductor Manufacturing International Corporation

Query -- 台積電走勢
Response:
Taiwan Semiconductor Manufacturing Company

{query_marker} {query}
"""


def build_extraction_prompt(query: str, language: Optional[str] = None) -> str:
    hint = _LANGUAGE_HINTS.get((language or "").strip().lower(), "")
    return EXTRACTION_PROMPT.format(
        language_hint=f"{hint}\n" if hint else "",
        query_marker=QUERY_MARKER,
        query=query,
    )


def extract_relevant_response(full_response: str, query: str) -> str:
    """Drop prompt text a model may have echoed back around its answer."""
    text = full_response or ""
    marker = f"{QUERY_MARKER} {query}"
    index = text.find(marker)
    if index != -1:
        tail = text[index + len(marker) :].strip()
        lines = [line.strip() for line in tail.split("\n") if line.strip()]
        if lines:
            return lines[0]

    for line in text.split("\n"):
        stripped = line.strip()
        if stripped and not any(token in stripped for token in _LINE_SKIP_MARKERS):
            return stripped
    return text.strip()
