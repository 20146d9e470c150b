import unittest
from datetime import datetime, timezone

from vendorworld.rfq.reporting import (
    average_quote_value,
    build_report,
    completion_rate,
    export_filename,
    filter_report_dataset,
    normalize_range_key,
    quotes_over_time,
    report_to_csv,
    resolve_date_range,
    top_vendors,
)


NOW = datetime(2026, 10, 17, 15, 30, tzinfo=timezone.utc)


class ReportingAggregatorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.rfqs = [
            {"id": "r1", "status": "open", "created_at": "2026-10-10 09:00:00"},
            {"id": "r2", "status": "closed", "created_at": "2026-10-11 09:00:00"},
        ]
        self.quotes = [
            {"id": "q1", "rfq_id": "r1", "vendor_id": "aaaaaaaa-1111", "amount": 100, "created_at": "2026-10-15 10:00:00"},
            {"id": "q2", "rfq_id": "r1", "vendor_id": "bbbbbbbb-2222", "amount": 200, "created_at": "2026-10-16 10:00:00"},
            {"id": "q3", "rfq_id": "r2", "vendor_id": "aaaaaaaa-1111", "amount": 300, "created_at": "2026-10-17 10:00:00"},
        ]

    def test_example_report(self) -> None:
        report = build_report(self.rfqs, self.quotes, range_key="month", now=NOW)

        self.assertEqual(report["total_rfqs"], 2)
        self.assertEqual(report["total_quotes"], 3)
        self.assertAlmostEqual(report["average_quote_value"], 200.0)
        self.assertAlmostEqual(report["completion_rate"], 50.0)
        self.assertEqual(report["rfqs_by_status"], {"open": 1, "closed": 1})
        self.assertEqual(
            [(item["name"], item["quote_count"], item["avg_amount"]) for item in report["top_vendors"]],
            [("Vendor aaaaaaaa", 2, 200.0), ("Vendor bbbbbbbb", 1, 200.0)],
        )

    def test_csv_export_rows(self) -> None:
        report = build_report(self.rfqs, self.quotes, range_key="month", now=NOW)
        body = report_to_csv(report)

        lines = body.split("\n")
        self.assertEqual(
            lines,
            [
                "Metric,Value",
                "Total RFQs,2",
                "Total Quotes,3",
                "Average Quote Value,$200.00",
                "Completion Rate,50.0%",
                "",
                "RFQ Status Breakdown",
                "open,1",
                "closed,1",
                "",
                "Top Vendors",
                "Vendor aaaaaaaa,2 quotes, $200.00 avg",
                "Vendor bbbbbbbb,1 quotes, $200.00 avg",
            ],
        )
        self.assertNotIn('"', body)
        self.assertEqual(export_filename(NOW), "rfq-report-2026-10-17.csv")

    def test_empty_dataset_yields_zeroes(self) -> None:
        self.assertEqual(average_quote_value([]), 0.0)
        self.assertEqual(completion_rate([]), 0.0)
        report = build_report([], [], now=NOW)
        self.assertEqual(report["top_vendors"], [])
        self.assertEqual(len(report["quotes_over_time"]), 7)

    def test_quotes_over_time_has_seven_days_oldest_first(self) -> None:
        buckets = quotes_over_time(self.quotes, NOW)

        self.assertEqual(len(buckets), 7)
        self.assertEqual(buckets[0]["date"], "2026-10-11")
        self.assertEqual(buckets[-1]["date"], "2026-10-17")
        self.assertEqual(buckets[-1]["label"], "Oct 17")
        self.assertEqual([bucket["count"] for bucket in buckets], [0, 0, 0, 0, 1, 1, 1])

    def test_top_vendors_ties_keep_encounter_order_and_limit(self) -> None:
        quotes = []
        for index in range(7):
            quotes.append({"vendor_id": f"vendor-{index}", "amount": 10})
        quotes.append({"vendor_id": "vendor-6", "amount": 30})

        result = top_vendors(quotes)

        self.assertEqual(len(result), 5)
        self.assertEqual(result[0]["vendor_id"], "vendor-6")
        self.assertEqual(result[0]["avg_amount"], 20.0)
        self.assertEqual([item["vendor_id"] for item in result[1:]], ["vendor-0", "vendor-1", "vendor-2", "vendor-3"])

    def test_range_resolution(self) -> None:
        self.assertEqual(normalize_range_key(None), "month")
        self.assertEqual(normalize_range_key("Quarter"), "quarter")
        self.assertIsNone(normalize_range_key("year"))

        start, end = resolve_date_range("month", NOW)
        self.assertEqual(start, datetime(2026, 10, 1, tzinfo=timezone.utc))
        self.assertEqual(end, NOW)
        start, _ = resolve_date_range("week", NOW)
        self.assertEqual(start, datetime(2026, 10, 10, 15, 30, tzinfo=timezone.utc))

    def test_dataset_filter_drops_out_of_range_rows(self) -> None:
        rfqs = self.rfqs + [{"id": "old", "status": "closed", "created_at": "2026-09-01 00:00:00"}]
        quotes = self.quotes + [
            {"id": "q4", "rfq_id": "old", "vendor_id": "c", "amount": 5, "created_at": "2026-10-12 00:00:00"},
            {"id": "q5", "rfq_id": "r1", "vendor_id": "c", "amount": 5, "created_at": "2026-09-30 23:59:59"},
        ]
        start, end = resolve_date_range("month", NOW)

        rfqs_in_range, quotes_in_range = filter_report_dataset(rfqs, quotes, start, end)

        self.assertEqual([rfq["id"] for rfq in rfqs_in_range], ["r1", "r2"])
        self.assertEqual([quote["id"] for quote in quotes_in_range], ["q1", "q2", "q3"])


if __name__ == "__main__":
    unittest.main()
