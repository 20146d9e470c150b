import unittest

from vendorworld.messages import error_message
from tests.helpers.api_client import ApiSandbox, create_rfq


class RfqLifecycleApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.sandbox = ApiSandbox(prefix="rfq_api")
        self.owner, self.owner_user = self.sandbox.register("client", full_name="Olivia Owner")
        self.other_client, _ = self.sandbox.register("client")
        self.vendor, self.vendor_user = self.sandbox.register("vendor", company_name="Acme Supply")

    def tearDown(self) -> None:
        self.sandbox.cleanup()

    def test_create_requires_title_before_any_write(self) -> None:
        response = self.owner.post("/api/rfqs", json={"title": "   "})

        self.assertEqual(response.status_code, 400)
        payload = response.get_json()
        self.assertEqual(payload["error"], "title_required")
        self.assertEqual(payload["message"], error_message("title_required"))
        self.assertEqual(self.owner.get("/api/rfqs").get_json()["items"], [])

    def test_create_rejects_invalid_status_and_due_date(self) -> None:
        response = self.owner.post("/api/rfqs", json={"title": "Desks", "status": "closed"})
        self.assertEqual(response.get_json()["error"], "status_invalid")

        response = self.owner.post("/api/rfqs", json={"title": "Desks", "due_date": "next week"})
        self.assertEqual(response.get_json()["error"], "due_date_invalid")

    def test_vendor_cannot_create(self) -> None:
        response = self.vendor.post("/api/rfqs", json={"title": "Vendor RFQ"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"], "permission_denied")

    def test_draft_then_publish_then_close(self) -> None:
        rfq = create_rfq(self.owner, "Office chairs", description="Ergonomic", due_date="2026-12-01")
        self.assertEqual(rfq["status"], "draft")
        self.assertEqual(rfq["created_by"], self.owner_user["id"])
        self.assertIn("edit_rfq", rfq["allowed_actions"])
        self.assertIn("publish_rfq", rfq["allowed_actions"])
        self.assertNotIn("close_rfq", rfq["allowed_actions"])
        self.assertEqual(rfq["primary_action"], "publish_rfq")

        close_early = self.owner.post(f"/api/rfqs/{rfq['id']}/actions/close_rfq")
        self.assertEqual(close_early.status_code, 409)
        self.assertEqual(close_early.get_json()["error"], "action_not_allowed_for_status")

        published = self.owner.post(f"/api/rfqs/{rfq['id']}/actions/publish_rfq")
        self.assertEqual(published.status_code, 200)
        published_rfq = published.get_json()["rfq"]
        self.assertEqual(published_rfq["status"], "open")
        self.assertIn("close_rfq", published_rfq["allowed_actions"])
        self.assertNotIn("edit_rfq", published_rfq["allowed_actions"])
        self.assertNotIn("publish_rfq", published_rfq["allowed_actions"])
        self.assertEqual(published.get_json()["message"], "RFQ status updated to open.")

        edit_open = self.owner.patch(f"/api/rfqs/{rfq['id']}", json={"title": "Renamed"})
        self.assertEqual(edit_open.status_code, 409)

        closed = self.owner.post(f"/api/rfqs/{rfq['id']}/actions/close_rfq")
        self.assertEqual(closed.status_code, 200)
        self.assertEqual(closed.get_json()["rfq"]["status"], "closed")

    def test_edit_draft(self) -> None:
        rfq = create_rfq(self.owner, "Desks")

        response = self.owner.patch(f"/api/rfqs/{rfq['id']}", json={"title": "Standing desks", "description": "  "})
        self.assertEqual(response.status_code, 200)
        updated = response.get_json()["rfq"]
        self.assertEqual(updated["title"], "Standing desks")
        self.assertIsNone(updated["description"])

        empty = self.owner.patch(f"/api/rfqs/{rfq['id']}", json={})
        self.assertEqual(empty.get_json()["error"], "no_changes")

    def test_non_owner_cannot_transition(self) -> None:
        rfq = create_rfq(self.owner, "Lamps", status="open")

        response = self.other_client.post(f"/api/rfqs/{rfq['id']}/actions/close_rfq")
        self.assertEqual(response.status_code, 403)
        response = self.vendor.post(f"/api/rfqs/{rfq['id']}/actions/close_rfq")
        self.assertEqual(response.status_code, 403)

    def test_unknown_action_is_rejected(self) -> None:
        rfq = create_rfq(self.owner, "Lamps", status="open")
        response = self.owner.post(f"/api/rfqs/{rfq['id']}/actions/award_rfq")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "action_invalid")

    def test_cancel_requires_confirmation(self) -> None:
        rfq = create_rfq(self.owner, "Paper", status="open")

        unconfirmed = self.owner.post(f"/api/rfqs/{rfq['id']}/actions/cancel_rfq")
        self.assertEqual(unconfirmed.status_code, 400)
        payload = unconfirmed.get_json()
        self.assertEqual(payload["error"], "confirmation_required")
        self.assertEqual(payload["confirmation"]["action_key"], "cancel_rfq")

        confirmed = self.owner.post(f"/api/rfqs/{rfq['id']}/actions/cancel_rfq", json={"confirm": True})
        self.assertEqual(confirmed.status_code, 200)
        cancelled = confirmed.get_json()["rfq"]
        self.assertEqual(cancelled["status"], "cancelled")
        self.assertEqual(cancelled["allowed_actions"], ["delete_rfq", "view_quotes"])

        again = self.owner.post(f"/api/rfqs/{rfq['id']}/actions/cancel_rfq", json={"confirm": True})
        self.assertEqual(again.status_code, 409)

    def test_delete_removes_quotes_and_participants(self) -> None:
        rfq = create_rfq(self.owner, "Printers", status="open")
        invite = self.owner.post(f"/api/rfqs/{rfq['id']}/participants", json={"vendor_id": self.vendor_user["id"]})
        self.assertEqual(invite.status_code, 201)
        quote = self.vendor.post(f"/api/rfqs/{rfq['id']}/quotes", json={"amount": "150"})
        self.assertEqual(quote.status_code, 201)

        unconfirmed = self.owner.delete(f"/api/rfqs/{rfq['id']}")
        self.assertEqual(unconfirmed.status_code, 400)

        deleted = self.owner.delete(f"/api/rfqs/{rfq['id']}?confirm=true")
        self.assertEqual(deleted.status_code, 200)
        self.assertTrue(deleted.get_json()["deleted"])
        self.assertEqual(self.owner.get(f"/api/rfqs/{rfq['id']}").status_code, 404)

        with self.sandbox.app.app_context():
            from vendorworld.db import get_db

            db = get_db()
            quotes = db.execute("SELECT COUNT(*) AS total FROM quotes WHERE rfq_id = ?", (rfq["id"],)).fetchone()
            participants = db.execute(
                "SELECT COUNT(*) AS total FROM rfq_participants WHERE rfq_id = ?",
                (rfq["id"],),
            ).fetchone()
        self.assertEqual(quotes["total"], 0)
        self.assertEqual(participants["total"], 0)

    def test_list_scoping_search_and_status_filter(self) -> None:
        draft = create_rfq(self.owner, "Blue pens", description="Ballpoint")
        create_rfq(self.owner, "Red folders", status="open")
        create_rfq(self.other_client, "Coffee beans", status="open")

        owner_items = self.owner.get("/api/rfqs").get_json()["items"]
        self.assertEqual([item["title"] for item in owner_items], ["Red folders", "Blue pens"])

        search = self.owner.get("/api/rfqs?search=BALLPOINT").get_json()["items"]
        self.assertEqual([item["id"] for item in search], [draft["id"]])

        status = self.owner.get("/api/rfqs?status=open").get_json()["items"]
        self.assertEqual([item["title"] for item in status], ["Red folders"])

        bad_status = self.owner.get("/api/rfqs?status=unknown")
        self.assertEqual(bad_status.status_code, 400)

        vendor_items = self.vendor.get("/api/rfqs").get_json()["items"]
        self.assertEqual({item["title"] for item in vendor_items}, {"Red folders", "Coffee beans"})
        self.assertTrue(all(item["allowed_actions"] == ["submit_quote", "view_rfq"] for item in vendor_items))

    def test_vendor_sees_only_own_quote_in_detail(self) -> None:
        rfq = create_rfq(self.owner, "Monitors", status="open")
        other_vendor, _ = self.sandbox.register("vendor")
        self.vendor.post(f"/api/rfqs/{rfq['id']}/quotes", json={"amount": 100})
        other_vendor.post(f"/api/rfqs/{rfq['id']}/quotes", json={"amount": 120})

        owner_detail = self.owner.get(f"/api/rfqs/{rfq['id']}").get_json()["rfq"]
        self.assertEqual(len(owner_detail["quotes"]), 2)
        vendor_detail = self.vendor.get(f"/api/rfqs/{rfq['id']}").get_json()["rfq"]
        self.assertEqual(len(vendor_detail["quotes"]), 1)
        self.assertEqual(vendor_detail["quotes"][0]["vendor_id"], self.vendor_user["id"])

    def test_draft_is_hidden_from_uninvited_users(self) -> None:
        rfq = create_rfq(self.owner, "Secret draft")
        self.assertEqual(self.vendor.get(f"/api/rfqs/{rfq['id']}").status_code, 404)
        self.assertEqual(self.other_client.get(f"/api/rfqs/{rfq['id']}").status_code, 404)


if __name__ == "__main__":
    unittest.main()
