import unittest

import parking_mcp_server
from parking_allocator import load_parking_system


class TestMcpTools(unittest.TestCase):
    def setUp(self) -> None:
        parking_mcp_server.SYSTEM, parking_mcp_server.FACILITY_IDS = load_parking_system(parking_mcp_server.CONFIG_PATH)

    def test_reserve_cost_and_cancel(self) -> None:
        reserved = parking_mcp_server.reserve_slot(
            "F1",
            "REGULAR",
            "mcp-user",
            "2030-01-07T10:00",
            "2030-01-07T12:00",
        )
        self.assertTrue(reserved["ok"])
        reservation_id = reserved["reservation"]["reservation_id"]

        cost = parking_mcp_server.reservation_cost(reservation_id)
        self.assertEqual(cost["amount"], "6.00")

        self.assertTrue(parking_mcp_server.pay_reservation(reservation_id)["ok"])
        self.assertTrue(parking_mcp_server.cancel_reservation(reservation_id)["ok"])

        again = parking_mcp_server.cancel_reservation(reservation_id)
        self.assertFalse(again["ok"])
        self.assertEqual(again["error"], "UNKNOWN_RESERVATION")

    def test_list_free_slots_and_unknown_facility(self) -> None:
        self.assertEqual(parking_mcp_server.list_free_slots("F1", "LARGE", "2031-01-01T09:00"), ["S3"])

        missing = parking_mcp_server.reserve_slot("F404", "LARGE", "x", "2031-01-01T09:00", "2031-01-01T10:00")
        self.assertEqual(missing["error"], "UNKNOWN_FACILITY")


if __name__ == "__main__":
    unittest.main()
