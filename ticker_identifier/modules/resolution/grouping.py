from __future__ import annotations

from typing import Dict, List

from ticker_identifier.core.types import TickerGroup
from ticker_identifier.modules.prioritization.schemas import TickerSelection


def group_tickers_by_source(selections: List[TickerSelection]) -> List[TickerGroup]:
    """Bundle tickers under the query fragment their entity came from.

    Group order follows first appearance.  Every selection lands in its
    group, so the groups flattened in order equal the selected tickers.
    """
    groups: Dict[str, TickerGroup] = {}
    for selection in selections:
        source = selection.entity.source_text
        group = groups.get(source)
        if group is None:
            group = TickerGroup(original_text=source)
            groups[source] = group
        group.tickers.append(selection.ticker)
    return list(groups.values())
