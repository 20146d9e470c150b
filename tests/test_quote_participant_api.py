import threading
import unittest

from vendorworld.db import _connect_database
from vendorworld.infrastructure.repositories.participant_repository import ParticipantRepository
from tests.helpers.api_client import ApiSandbox, create_rfq


class QuoteSubmissionApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.sandbox = ApiSandbox(prefix="quote_api")
        self.owner, _ = self.sandbox.register("client")
        self.vendor, self.vendor_user = self.sandbox.register("vendor", company_name="Acme Supply")
        self.rfq = create_rfq(self.owner, "Toner", status="open")

    def tearDown(self) -> None:
        self.sandbox.cleanup()

    def test_second_submission_updates_existing_quote(self) -> None:
        first = self.vendor.post(
            f"/api/rfqs/{self.rfq['id']}/quotes",
            json={"amount": "1200.50", "message": "Delivery in 2 weeks"},
        )
        self.assertEqual(first.status_code, 201)
        first_quote = first.get_json()["quote"]
        self.assertEqual(first_quote["status"], "submitted")
        self.assertEqual(first_quote["currency"], "USD")
        self.assertAlmostEqual(first_quote["amount"], 1200.5)
        self.assertTrue(first_quote["submitted_at"])
        self.assertTrue(first.get_json()["created"])

        second = self.vendor.post(
            f"/api/rfqs/{self.rfq['id']}/quotes",
            json={"amount": 999, "currency": "eur", "message": ""},
        )
        self.assertEqual(second.status_code, 200)
        second_quote = second.get_json()["quote"]
        self.assertEqual(second_quote["id"], first_quote["id"])
        self.assertEqual(second_quote["currency"], "EUR")
        self.assertIsNone(second_quote["message"])
        self.assertFalse(second.get_json()["created"])

        detail = self.owner.get(f"/api/rfqs/{self.rfq['id']}").get_json()["rfq"]
        self.assertEqual(len(detail["quotes"]), 1)
        self.assertEqual(detail["quotes"][0]["amount"], 999)

        mine = self.vendor.get(f"/api/rfqs/{self.rfq['id']}/quotes/mine").get_json()
        self.assertEqual(mine["quote"]["id"], first_quote["id"])

    def test_amount_is_parsed_from_free_text(self) -> None:
        response = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={"amount": "250.75 USD"})
        self.assertEqual(response.status_code, 201)
        self.assertAlmostEqual(response.get_json()["quote"]["amount"], 250.75)

    def test_missing_or_invalid_amount(self) -> None:
        missing = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.get_json()["error"], "amount_required")

        invalid = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={"amount": "abc"})
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.get_json()["error"], "amount_invalid")

        huge = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={"amount": 10**400})
        self.assertEqual(huge.status_code, 400)
        self.assertEqual(huge.get_json()["error"], "amount_invalid")

        mine = self.vendor.get(f"/api/rfqs/{self.rfq['id']}/quotes/mine").get_json()
        self.assertIsNone(mine["quote"])

    def test_closed_rfq_rejects_quotes(self) -> None:
        self.vendor.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={"amount": 10})
        self.owner.post(f"/api/rfqs/{self.rfq['id']}/actions/close_rfq")

        response = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={"amount": 20})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "rfq_closed_for_quotes")

        detail = self.vendor.get(f"/api/rfqs/{self.rfq['id']}").get_json()["rfq"]
        self.assertEqual(detail["allowed_actions"], ["view_rfq"])
        self.assertEqual(detail["quotes"][0]["amount"], 10)

    def test_clients_cannot_quote(self) -> None:
        response = self.owner.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={"amount": 10})
        self.assertEqual(response.status_code, 403)


class ParticipantApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.sandbox = ApiSandbox(prefix="participant_api")
        self.owner, self.owner_user = self.sandbox.register("client")
        self.vendor, self.vendor_user = self.sandbox.register("vendor", full_name="Val Vendor", company_name="Acme")
        self.second_vendor, self.second_vendor_user = self.sandbox.register("vendor", company_name="Globex")
        self.rfq = create_rfq(self.owner, "Cables")

    def tearDown(self) -> None:
        self.sandbox.cleanup()

    def _invite(self, vendor_id: str):
        return self.owner.post(f"/api/rfqs/{self.rfq['id']}/participants", json={"vendor_id": vendor_id})

    def test_invite_once_and_reject_duplicates(self) -> None:
        available = self.owner.get(f"/api/rfqs/{self.rfq['id']}/available-vendors").get_json()["items"]
        self.assertEqual(len(available), 2)

        first = self._invite(self.vendor_user["id"])
        self.assertEqual(first.status_code, 201)
        participant = first.get_json()["participant"]
        self.assertEqual(participant["status"], "invited")

        duplicate = self._invite(self.vendor_user["id"])
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.get_json()["error"], "participant_already_invited")

        listing = self.owner.get(f"/api/rfqs/{self.rfq['id']}/participants").get_json()
        self.assertEqual(len(listing["items"]), 1)
        self.assertEqual(listing["items"][0]["company_name"], "Acme")
        self.assertEqual(listing["items"][0]["full_name"], "Val Vendor")
        self.assertTrue(listing["can_manage"])

        available = self.owner.get(f"/api/rfqs/{self.rfq['id']}/available-vendors").get_json()["items"]
        self.assertEqual([item["id"] for item in available], [self.second_vendor_user["id"]])

    def test_concurrent_invitations_store_one_record(self) -> None:
        db_path = self.sandbox.temp_db.db_path
        repository = ParticipantRepository(viewer_id=self.owner_user["id"])
        results = {}

        def _invite_on_own_connection() -> None:
            second = _connect_database(db_path)
            try:
                results["second"] = repository.insert_if_absent(
                    second, rfq_id=self.rfq["id"], vendor_id=self.vendor_user["id"]
                )
                second.commit()
            finally:
                second.close()

        first = _connect_database(db_path)
        try:
            results["first"] = repository.insert_if_absent(
                first, rfq_id=self.rfq["id"], vendor_id=self.vendor_user["id"]
            )
            worker = threading.Thread(target=_invite_on_own_connection)
            worker.start()
            worker.join(timeout=0.2)
            first.commit()
            worker.join(timeout=10)
        finally:
            first.close()

        self.assertFalse(worker.is_alive())
        self.assertTrue(results["first"])
        self.assertIsNone(results["second"])
        listing = self.owner.get(f"/api/rfqs/{self.rfq['id']}/participants").get_json()["items"]
        self.assertEqual([item["id"] for item in listing], [results["first"]])

        duplicate = self._invite(self.vendor_user["id"])
        self.assertEqual(duplicate.status_code, 409)

    def test_repeated_insert_in_one_transaction_is_ignored(self) -> None:
        repository = ParticipantRepository(viewer_id=self.owner_user["id"])
        db = _connect_database(self.sandbox.temp_db.db_path)
        try:
            first_id = repository.insert_if_absent(db, rfq_id=self.rfq["id"], vendor_id=self.vendor_user["id"])
            second_id = repository.insert_if_absent(db, rfq_id=self.rfq["id"], vendor_id=self.vendor_user["id"])
            db.commit()
        finally:
            db.close()

        self.assertTrue(first_id)
        self.assertIsNone(second_id)
        self.assertEqual(len(self.owner.get(f"/api/rfqs/{self.rfq['id']}/participants").get_json()["items"]), 1)

    def test_invite_validation(self) -> None:
        self.assertEqual(self._invite("").get_json()["error"], "vendor_id_required")
        self.assertEqual(self._invite("missing-vendor").status_code, 404)

        client, client_user = self.sandbox.register("client")
        self.assertEqual(self._invite(client_user["id"]).get_json()["error"], "vendor_not_found")

        other = client.post(f"/api/rfqs/{self.rfq['id']}/participants", json={"vendor_id": self.vendor_user["id"]})
        self.assertEqual(other.status_code, 403)

    def test_invited_vendor_sees_draft_and_responds(self) -> None:
        self._invite(self.vendor_user["id"])

        items = self.vendor.get("/api/rfqs").get_json()["items"]
        self.assertEqual([item["id"] for item in items], [self.rfq["id"]])

        declined = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/invitation", json={"decision": "decline"})
        self.assertEqual(declined.status_code, 200)
        self.assertEqual(declined.get_json()["participant"]["status"], "declined")

        accepted = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/invitation", json={"decision": "accept"})
        self.assertEqual(accepted.get_json()["participant"]["status"], "accepted")

        bogus = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/invitation", json={"decision": "maybe"})
        self.assertEqual(bogus.status_code, 400)

        uninvited = self.second_vendor.post(f"/api/rfqs/{self.rfq['id']}/invitation", json={"decision": "accept"})
        self.assertEqual(uninvited.status_code, 404)
        self.assertEqual(uninvited.get_json()["error"], "invitation_not_found")

    def test_quote_marks_participant_submitted(self) -> None:
        self._invite(self.vendor_user["id"])

        response = self.vendor.post(f"/api/rfqs/{self.rfq['id']}/quotes", json={"amount": 75})
        self.assertEqual(response.status_code, 201)

        listing = self.owner.get(f"/api/rfqs/{self.rfq['id']}/participants").get_json()["items"]
        self.assertEqual(listing[0]["status"], "submitted")

    def test_remove_participant_requires_confirmation(self) -> None:
        participant = self._invite(self.vendor_user["id"]).get_json()["participant"]
        url = f"/api/rfqs/{self.rfq['id']}/participants/{participant['id']}"

        unconfirmed = self.owner.delete(url)
        self.assertEqual(unconfirmed.status_code, 400)
        self.assertEqual(unconfirmed.get_json()["error"], "confirmation_required")

        removed = self.owner.delete(url, headers={"X-Confirm": "true"})
        self.assertEqual(removed.status_code, 200)
        self.assertEqual(self.owner.get(f"/api/rfqs/{self.rfq['id']}/participants").get_json()["items"], [])

        missing = self.owner.delete(url, headers={"X-Confirm": "true"})
        self.assertEqual(missing.status_code, 404)

    def test_closed_rfq_cannot_invite(self) -> None:
        self.owner.post(f"/api/rfqs/{self.rfq['id']}/actions/publish_rfq")
        self.owner.post(f"/api/rfqs/{self.rfq['id']}/actions/close_rfq")

        response = self._invite(self.vendor_user["id"])
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "action_not_allowed_for_status")


if __name__ == "__main__":
    unittest.main()
