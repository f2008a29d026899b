"""Fundraising event extraction from chainhook payloads.

Chainhook payload shapes vary by node and relay version, so nothing here
assumes a schema. The walker visits every node of the payload, carries
txid / block height / contract identifier down from ancestors, and treats
any node tagged as a contract log or print as a candidate event. Decoding a
candidate tries a fixed chain of strategies; a strategy that does not apply
returns None and the next one is tried. Nothing in this module raises on an
unrecognized shape.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

from chainhook.canonical import compute_event_uid
from chainhook.clarity import MAX_BIGINT, MAX_TOKEN_AMOUNT, parse_clarity_repr, to_bounded_uint
from chainhook.events import (
    ExtractedFundraisingEvent,
    is_fundraising_event_name,
    is_near_miss_event_name,
)
from chainhook_indexer.log import get_logger

logger = get_logger(__name__)

# Fields that may carry the log type tag, and the tags that mark a print.
# Extend these when upstream formats change; never remove entries.
TYPE_TAG_FIELDS = ("type", "event_type", "topic")
LOG_TYPE_TAGS = frozenset({
    "smart_contract_log",
    "contract_log",
    "print",
    "print_event",
    "SmartContractEvent",
})

# Fields that may hold the printed value, most specific first
VALUE_FIELDS = ("value", "decoded_clarity_value", "decoded_value")

AMOUNT_FIELDS = ("amount", "amountUstx", "amountSats")
CAMPAIGN_ID_FIELDS = ("campaignId", "campaign_id")
TIMESTAMP_FIELDS = ("ts", "timestamp")


@dataclass(frozen=True)
class HookContext:
    """Correlation fields inherited from ancestors of a payload node."""

    txid: Optional[str] = None
    block_height: Optional[int] = None
    contract_identifier: Optional[str] = None

    def derive(self, node: Dict[str, Any]) -> "HookContext":
        """Context for `node`: its own fields override the inherited ones."""
        txid = _node_txid(node)
        block_height = _node_block_height(node)
        contract_identifier = _node_contract_identifier(node)
        return replace(
            self,
            txid=txid if txid is not None else self.txid,
            block_height=block_height if block_height is not None else self.block_height,
            contract_identifier=(
                contract_identifier if contract_identifier is not None else self.contract_identifier
            ),
        )

    def as_dict(self) -> Dict[str, Any]:
        """Present fields only, so an absent field never changes a hash."""
        fields = {
            "txid": self.txid,
            "block_height": self.block_height,
            "contract_identifier": self.contract_identifier,
        }
        return {key: value for key, value in fields.items() if value is not None}


def _first_str(node: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = node.get(key)
        if isinstance(value, str):
            return value
    return None


def _first_present(node: Dict[str, Any], keys) -> Any:
    for key in keys:
        value = node.get(key)
        if value is not None:
            return value
    return None


def _node_txid(node: Dict[str, Any]) -> Optional[str]:
    txid = _first_str(node, "txid", "tx_id")
    if txid is None and isinstance(node.get("transaction_identifier"), dict):
        txid = _first_str(node["transaction_identifier"], "hash")
    return txid


def _node_block_height(node: Dict[str, Any]) -> Optional[int]:
    height = to_bounded_uint(_first_present(node, ("block_height", "blockHeight")), MAX_BIGINT)
    if height is None and isinstance(node.get("block_identifier"), dict):
        height = to_bounded_uint(node["block_identifier"].get("index"), MAX_BIGINT)
    return height


def _node_contract_identifier(node: Dict[str, Any]) -> Optional[str]:
    return _first_str(node, "contract_identifier", "contractIdentifier", "contract_id")


def is_log_node(node: Dict[str, Any]) -> bool:
    """Whether a payload node is tagged as a contract log / print event."""
    for field in TYPE_TAG_FIELDS:
        tag = node.get(field)
        if isinstance(tag, str) and tag in LOG_TYPE_TAGS:
            return True
    return False


# Value resolution strategies. Each returns the decoded tuple when it applies
# to the node, None otherwise.

def _structured_value(node: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for field in VALUE_FIELDS:
        candidate = node.get(field)
        if isinstance(candidate, dict) and "event" in candidate:
            return candidate
    return None


def _repr_value(node: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    texts = []
    for field in VALUE_FIELDS:
        candidate = node.get(field)
        if isinstance(candidate, dict) and isinstance(candidate.get("repr"), str):
            texts.append(candidate["repr"])
        elif isinstance(candidate, str):
            texts.append(candidate)
    if isinstance(node.get("repr"), str):
        texts.append(node["repr"])

    for text in texts:
        fields = parse_clarity_repr(text)
        if "event" in fields:
            return fields
    return None


def _whole_node(node: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return node if "event" in node else None


VALUE_STRATEGIES: List[Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = [
    _structured_value,
    _repr_value,
    _whole_node,
]


def resolve_log_value(node: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Run the value strategies in order and return the first match."""
    for strategy in VALUE_STRATEGIES:
        value = strategy(node)
        if value is not None:
            return value
    return None


def _build_event(
    node: Dict[str, Any],
    value: Dict[str, Any],
    context: HookContext,
) -> Optional[ExtractedFundraisingEvent]:
    event_name = value.get("event")
    if not isinstance(event_name, str) or not is_fundraising_event_name(event_name):
        if isinstance(event_name, str) and is_near_miss_event_name(event_name):
            logger.warning(f"Unrecognized fundraising-like event name ignored: {event_name!r}")
        return None

    ctx = context.as_dict()
    raw = {"ctx": ctx, "node": node}
    event = ExtractedFundraisingEvent(
        event_uid=compute_event_uid(raw),
        event_name=event_name,
        raw=raw,
        campaign_id=to_bounded_uint(_first_present(value, CAMPAIGN_ID_FIELDS), MAX_BIGINT),
        donor=_first_str(value, "donor"),
        owner=_first_str(value, "owner"),
        beneficiary=_first_str(value, "beneficiary"),
        token=_first_str(value, "token"),
        amount=to_bounded_uint(_first_present(value, AMOUNT_FIELDS), MAX_TOKEN_AMOUNT),
        ts=to_bounded_uint(_first_present(value, TIMESTAMP_FIELDS), MAX_BIGINT),
        txid=context.txid,
        block_height=context.block_height,
        contract_identifier=context.contract_identifier,
    )
    if event.campaign_id is None:
        logger.warning(f"Fundraising event {event_name!r} without campaign id (uid={event.event_uid[:12]})")
    return event


def extract_fundraising_events(
    payload: Any,
    expected_contract_identifier: Optional[str] = None,
) -> List[ExtractedFundraisingEvent]:
    """Extract fundraising events from an arbitrary chainhook payload.

    Args:
        payload: Decoded JSON body of a chainhook delivery
        expected_contract_identifier: When set, prints from any other
            contract are skipped. Prints whose contract cannot be
            determined are kept.

    Returns:
        Events in depth-first pre-order of the payload
    """
    results: List[ExtractedFundraisingEvent] = []

    def visit(node: Any, context: HookContext) -> None:
        if isinstance(node, list):
            for item in node:
                visit(item, context)
            return
        if not isinstance(node, dict):
            return

        node_context = context.derive(node)

        if is_log_node(node):
            contract_identifier = node_context.contract_identifier
            if (
                expected_contract_identifier
                and contract_identifier
                and contract_identifier != expected_contract_identifier
            ):
                logger.debug(f"Skipping print from other contract {contract_identifier}")
            else:
                value = resolve_log_value(node)
                if value is not None:
                    event = _build_event(node, value, node_context)
                    if event is not None:
                        results.append(event)

        # Prints can sit at any depth, including under a matched node
        for child in node.values():
            visit(child, node_context)

    visit(payload, HookContext())
    return results


@dataclass(frozen=True)
class DeliveryMeta:
    """Identifying fields from the top level of a delivery envelope."""

    hook_uuid: Optional[str] = None
    chain: Optional[str] = None
    network: Optional[str] = None
    action: Optional[str] = None
    block_height: Optional[int] = None
    txid: Optional[str] = None
    contract_identifier: Optional[str] = None


def extract_top_level_meta(payload: Any) -> DeliveryMeta:
    """Read envelope fields from the top level of a payload (no recursion).

    Both snake_case and camelCase names are accepted. Non-object payloads
    yield an empty DeliveryMeta.
    """
    if not isinstance(payload, dict):
        return DeliveryMeta()

    return DeliveryMeta(
        hook_uuid=_first_str(payload, "uuid", "hook_uuid", "hookUuid"),
        chain=_first_str(payload, "chain"),
        network=_first_str(payload, "network"),
        action=_first_str(payload, "action"),
        block_height=to_bounded_uint(_first_present(payload, ("block_height", "blockHeight")), MAX_BIGINT),
        txid=_first_str(payload, "txid"),
        contract_identifier=_first_str(payload, "contract_identifier", "contractIdentifier"),
    )
