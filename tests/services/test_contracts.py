"""Tests for service payload contracts."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from supplyctl.services.contracts import CheckResultData, ItemListData, dump_validated


class TestDumpValidated:
    def test_item_list(self) -> None:
        data = dump_validated(
            ItemListData,
            {
                "count": 1,
                "items": [
                    {
                        "sku": 0,
                        "name": "Widget",
                        "price": 100,
                        "state": "ForSale",
                        "state_code": 0,
                        "seller": "alice",
                    }
                ],
            },
        )
        assert data["items"][0]["buyer"] is None

    def test_rejects_unknown_state(self) -> None:
        with pytest.raises(ValidationError):
            dump_validated(
                ItemListData,
                {
                    "count": 1,
                    "items": [
                        {
                            "sku": 0,
                            "name": "Widget",
                            "price": 1,
                            "state": "Lost",
                            "state_code": 9,
                            "seller": "a",
                        }
                    ],
                },
            )

    def test_check_extra_fields_kept(self) -> None:
        data = dump_validated(
            CheckResultData,
            {
                "issues": [
                    {"category": "ledger_health", "severity": "error", "message": "x", "hint": "y"}
                ],
                "count": 1,
                "error_count": 1,
                "warning_count": 0,
                "healthy": False,
            },
        )
        assert data["issues"][0]["hint"] == "y"
