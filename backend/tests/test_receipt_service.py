import unittest
from datetime import datetime, timezone
from decimal import Decimal

from tdpos.models.orders import OrderLineRecord, OrderRecord
from tdpos.services.receipt_service import build_receipt, print_receipt, render_receipt_text


class FakePrinter:
    def __init__(self):
        self.chunks = []

    def write(self, data: bytes) -> None:
        self.chunks.append(data)


def _order(method="cash", reference=None, received="200.00", change="50.00"):
    return OrderRecord(
        id="17",
        order_number="ORD-654321-042",
        items=(
            OrderLineRecord(product_id="3", quantity=2, price=Decimal("100.00"),
                            discount=Decimal("50.00"), subtotal=Decimal("150.00")),
            OrderLineRecord(product_id="9", quantity=1, price=Decimal("0.00"),
                            discount=Decimal("0.00"), subtotal=Decimal("0.00")),
        ),
        total_amount=Decimal("150.00"),
        branch_id="1",
        cashier_id="2",
        payment_method=method,
        amount_received=Decimal(received),
        change_amount=Decimal(change),
        payment_reference=reference,
        created_at=datetime(2026, 4, 1, 14, 5, 0),
    )


class ReceiptServiceTests(unittest.TestCase):
    def setUp(self):
        self.receipt = build_receipt(
            _order(),
            product_names={"3": "Road Grip 195/65R15"},
            branch_name="TD Maseru",
            branch_location="Maseru",
            cashier_name="Lerato Mokoena",
        )

    def test_build_receipt_totals(self):
        self.assertEqual(self.receipt.subtotal, Decimal("200.00"))
        self.assertEqual(self.receipt.total_discount, Decimal("50.00"))
        self.assertEqual(self.receipt.total, Decimal("150.00"))
        self.assertEqual(self.receipt.order_id, "17")

    def test_deleted_product_prints_as_unknown(self):
        self.assertEqual([i.product_name for i in self.receipt.items], ["Road Grip 195/65R15", "Unknown"])

    def test_to_dict(self):
        data = self.receipt.to_dict()
        self.assertEqual(data["date"], "2026-04-01T14:05:00Z")
        self.assertEqual(data["change_amount"], "50.00")
        self.assertEqual(data["items"][0]["subtotal"], "150.00")

    def test_render_cash_receipt(self):
        text = render_receipt_text(self.receipt, width=40, business_name="TD Holdings", tz=timezone.utc)
        lines = text.splitlines()

        self.assertTrue(all(len(line) <= 40 for line in lines))
        self.assertEqual(lines[0].strip(), "TD Holdings")
        self.assertIn("Change:", text)
        self.assertIn("M50.00", text)
        self.assertTrue(lines[-1].strip().startswith("Thank you"))
        total_line = next(line for line in lines if line.startswith("TOTAL:"))
        self.assertTrue(total_line.endswith("M150.00"))

    def test_render_card_receipt_shows_reference(self):
        receipt = build_receipt(
            _order(method="card", reference="TX-88", received="150.00", change="0.00"),
            product_names={},
            branch_name="TD Leribe",
            cashier_name="Unknown",
        )
        text = render_receipt_text(receipt, width=32, currency="R")

        self.assertIn("TX-88", text)
        self.assertNotIn("Change:", text)
        self.assertIn("R150.00", text)

    def test_long_names_are_truncated(self):
        receipt = build_receipt(
            _order(),
            product_names={"3": "X" * 100},
            branch_name="TD Maseru",
            cashier_name="Lerato Mokoena",
        )
        text = render_receipt_text(receipt, width=32)
        self.assertTrue(all(len(line) <= 32 for line in text.splitlines()))

    def test_print_receipt_encodes_for_printer(self):
        printer = FakePrinter()
        print_receipt(printer, "Total M10.00 ✓\n")
        self.assertEqual(printer.chunks, [b"Total M10.00 ?\n"])


if __name__ == "__main__":
    unittest.main()
