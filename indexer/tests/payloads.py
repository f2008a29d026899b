"""Chainhook payload builders shared by the tests."""

from typing import Any, Dict, Optional

CONTRACT_ID = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7.fundraising"
OTHER_CONTRACT_ID = "SP3K8BC0PPEVCV7NZ6QSRWPQ2JE9E5B6N3PA0KBR9.other-app"


def print_log(value: Any, contract_identifier: Optional[str] = CONTRACT_ID) -> Dict[str, Any]:
    """A smart_contract_log node carrying `value`."""
    node = {"type": "smart_contract_log", "value": value}
    if contract_identifier is not None:
        node["contract_identifier"] = contract_identifier
    return node
