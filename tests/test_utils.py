from decimal import Decimal

from hexbytes import HexBytes

from core.services.utils import to_json_safe


def test_to_json_safe():
    out = to_json_safe(
        {
            "hash": HexBytes(b"\x01\x02"),
            "logs": [b"\xff", (1, None)],
            "status": 1,
            "obj": Decimal("1.5"),
        }
    )
    assert out == {"hash": "0x0102", "logs": ["0xff", [1, None]], "status": 1, "obj": "1.5"}
