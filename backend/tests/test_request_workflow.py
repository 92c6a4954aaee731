"""
Asset request workflow tests.

Covers submission, approval (stock gate + seat limit), denial, direct
assignment, offboarding and the listing filters, exercised at the service
layer against the in-memory database.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from assetverse.models import Asset, AssetRequest, EmployeeMembership
from assetverse.errors import (
    NotFoundError,
    ForbiddenError,
    InvalidInputError,
    OutOfStockError,
    SeatLimitReachedError,
)
from assetverse.services import request_service, asset_service
from tests.conftest import make_user, make_asset, make_member, roster_emails, requests_for


def _submit(asset, employee, **kwargs):
    return request_service.submit_request(
        asset_id=asset.id,
        requester_email=employee.email,
        authenticated_email=employee.email,
        **kwargs,
    )


class TestSubmitRequest:
    def test_creates_pending_request_without_touching_stock(self, db_session, laptop, employee):
        req = _submit(laptop, employee, note="First week")

        assert req.status == "pending"
        assert req.asset_name == "Dell Latitude"
        assert req.asset_type == "Returnable"
        assert req.hr_email == "hr@acme.com"
        assert req.company_name == "Acme Corp"
        assert req.requester_name == "Emma Stone"
        assert req.note == "First week"
        assert req.approved_at is None

        db_session.refresh(laptop)
        assert laptop.quantity == 3

    def test_out_of_stock_asset_is_refused(self, db_session, hr_user, employee):
        empty = make_asset(db_session, hr_user, product_name="Monitor", quantity=0)

        with pytest.raises(OutOfStockError):
            _submit(empty, employee)
        assert requests_for(db_session, employee.email) == []

    def test_cannot_request_for_someone_else(self, db_session, laptop, employee, second_employee):
        with pytest.raises(ForbiddenError):
            request_service.submit_request(
                asset_id=laptop.id,
                requester_email=second_employee.email,
                authenticated_email=employee.email,
            )

    def test_unknown_asset(self, db_session, employee):
        with pytest.raises(NotFoundError):
            request_service.submit_request(asset_id=9999, requester_email=employee.email)

    def test_pending_requests_do_not_reserve_stock(self, db_session, hr_user, employee, second_employee):
        # Soft check only: two employees may both ask for the last unit
        last_one = make_asset(db_session, hr_user, product_name="Chair", quantity=1)
        _submit(last_one, employee)
        _submit(last_one, second_employee)

        pending = db_session.query(AssetRequest).filter_by(asset_id=last_one.id, status="pending").count()
        assert pending == 2


class TestApproveRequest:
    def test_new_employee_joins_roster_and_takes_a_unit(self, db_session, hr_user, laptop, employee):
        req = _submit(laptop, employee)

        result = request_service.approve_request(req.id, hr_email=hr_user.email)

        assert result["modified_count"] == 3
        assert result["request"]["status"] == "approved"
        assert result["request"]["approved_at"] is not None

        db_session.refresh(laptop)
        assert laptop.quantity == 2
        assert roster_emails(db_session, hr_user) == ["emma@acme.com"]

        membership = db_session.query(EmployeeMembership).filter_by(employee_email=employee.email).one()
        assert membership.company_name == "Acme Corp"
        assert membership.employee_name == "Emma Stone"

    def test_existing_member_skips_roster_step(self, db_session, hr_user, laptop, employee):
        make_member(db_session, hr_user, employee)
        req = _submit(laptop, employee)

        result = request_service.approve_request(req.id)

        assert result["modified_count"] == 2
        assert roster_emails(db_session, hr_user) == ["emma@acme.com"]

    def test_existing_member_is_not_blocked_by_full_roster(self, db_session, hr_user, laptop, employee):
        make_member(db_session, hr_user, employee)
        hr_user.employee_limit = 1
        db_session.commit()

        req = _submit(laptop, employee)
        request_service.approve_request(req.id)

        assert db_session.get(AssetRequest, req.id).status == "approved"

    def test_seat_limit_blocks_new_employee_and_rolls_back(self, db_session, hr_user, laptop, employee, second_employee):
        hr_user.employee_limit = 1
        db_session.commit()
        make_member(db_session, hr_user, second_employee)

        req = _submit(laptop, employee)
        with pytest.raises(SeatLimitReachedError) as exc:
            request_service.approve_request(req.id)

        assert "Employee limit reached (1/1)" in str(exc.value)
        assert db_session.get(AssetRequest, req.id).status == "pending"
        assert db_session.get(Asset, laptop.id).quantity == 3
        assert roster_emails(db_session, hr_user) == ["frank@acme.com"]

    def test_zero_seat_limit_blocks_first_employee(self, db_session, hr_user, laptop, employee):
        hr_user.employee_limit = 0
        db_session.commit()

        req = _submit(laptop, employee)
        with pytest.raises(SeatLimitReachedError):
            request_service.approve_request(req.id)
        assert roster_emails(db_session, hr_user) == []

    def test_stock_gone_since_submission_fails_whole_approval(self, db_session, hr_user, employee):
        chair = make_asset(db_session, hr_user, product_name="Chair", quantity=1)
        req = _submit(chair, employee)

        chair.quantity = 0
        db_session.commit()

        with pytest.raises(OutOfStockError):
            request_service.approve_request(req.id)

        # Roster admission happened before the stock gate and must be undone
        assert roster_emails(db_session, hr_user) == []
        assert db_session.get(AssetRequest, req.id).status == "pending"
        assert db_session.get(Asset, chair.id).quantity == 0

    def test_last_unit_goes_to_first_approval_only(self, db_session, hr_user, employee, second_employee):
        chair = make_asset(db_session, hr_user, product_name="Chair", quantity=1)
        first = _submit(chair, employee)
        second = _submit(chair, second_employee)

        request_service.approve_request(first.id)
        with pytest.raises(OutOfStockError):
            request_service.approve_request(second.id)

        assert db_session.get(Asset, chair.id).quantity == 0
        assert db_session.get(AssetRequest, second.id).status == "pending"

    def test_approving_twice_never_counts_twice(self, db_session, laptop, employee):
        req = _submit(laptop, employee)
        request_service.approve_request(req.id)

        with pytest.raises(InvalidInputError) as exc:
            request_service.approve_request(req.id)

        assert "already approved" in str(exc.value)
        assert db_session.get(Asset, laptop.id).quantity == 2

    def test_denied_request_cannot_be_approved(self, db_session, laptop, employee):
        req = _submit(laptop, employee)
        request_service.deny_request(req.id)

        with pytest.raises(InvalidInputError):
            request_service.approve_request(req.id)
        assert db_session.get(Asset, laptop.id).quantity == 3

    def test_other_hr_cannot_approve(self, db_session, laptop, employee, other_hr):
        req = _submit(laptop, employee)

        with pytest.raises(ForbiddenError):
            request_service.approve_request(req.id, hr_email=other_hr.email)
        assert db_session.get(AssetRequest, req.id).status == "pending"

    def test_unknown_request(self, db_session, hr_user):
        with pytest.raises(NotFoundError):
            request_service.approve_request(4242)

    def test_request_for_deleted_asset_cannot_be_approved(self, db_session, hr_user, laptop, employee):
        req = _submit(laptop, employee)
        request_service.approve_request(req.id)
        other = _submit(make_asset(db_session, hr_user, product_name="Phone"), employee)

        # Deleting rejects the pending request, so approval is refused outright
        asset_service.delete_asset(other.asset_id, hr_email=hr_user.email)

        with pytest.raises(InvalidInputError):
            request_service.approve_request(other.id)

    def test_one_membership_per_employee_and_hr(self, db_session, hr_user, employee):
        make_member(db_session, hr_user, employee)

        db_session.add(EmployeeMembership(employee_email=employee.email, hr_email=hr_user.email))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

        assert roster_emails(db_session, hr_user) == ["emma@acme.com"]

    def test_employee_may_join_several_companies(self, db_session, hr_user, other_hr, laptop, employee):
        globex_phone = make_asset(db_session, other_hr, product_name="Phone", quantity=2)

        request_service.approve_request(_submit(laptop, employee).id)
        request_service.approve_request(_submit(globex_phone, employee).id)

        assert roster_emails(db_session, hr_user) == ["emma@acme.com"]
        assert roster_emails(db_session, other_hr) == ["emma@acme.com"]


class TestDenyAndDecide:
    def test_deny_changes_status_only(self, db_session, hr_user, laptop, employee):
        req = _submit(laptop, employee)

        denied = request_service.deny_request(req.id, hr_email=hr_user.email)

        assert denied.status == "denied"
        assert denied.processed_at is not None
        assert denied.approved_at is None
        assert db_session.get(Asset, laptop.id).quantity == 3
        assert roster_emails(db_session, hr_user) == []

    def test_deny_approved_request_is_refused(self, db_session, laptop, employee):
        req = _submit(laptop, employee)
        request_service.approve_request(req.id)

        with pytest.raises(InvalidInputError):
            request_service.deny_request(req.id)

    def test_decide_routes_to_approval(self, db_session, hr_user, laptop, employee):
        req = _submit(laptop, employee)

        result = request_service.decide_request(req.id, "approved", hr_email=hr_user.email)

        assert result["request"]["status"] == "approved"
        assert result["modified_count"] == 3

    def test_decide_routes_to_denial(self, db_session, hr_user, laptop, employee):
        req = _submit(laptop, employee)

        result = request_service.decide_request(req.id, "denied", hr_email=hr_user.email)

        assert result == {"request": db_session.get(AssetRequest, req.id).to_dict(), "modified_count": 1}

    @pytest.mark.parametrize("status", [None, "", "pending", "rejected", "APPROVED"])
    def test_decide_rejects_other_statuses(self, db_session, laptop, employee, status):
        req = _submit(laptop, employee)

        with pytest.raises(InvalidInputError) as exc:
            request_service.decide_request(req.id, status)

        assert str(exc.value) == "Invalid Status"
        assert db_session.get(AssetRequest, req.id).status == "pending"


class TestAssignDirectly:
    def test_creates_approved_request_and_membership(self, db_session, hr_user, laptop, employee):
        req = request_service.assign_directly(
            asset_id=laptop.id, employee_email=employee.email, hr_email=hr_user.email, note="Onboarding kit"
        )

        assert req.status == "approved"
        assert req.assigned_directly is True
        assert req.requester_name == "Emma Stone"
        assert req.note == "Onboarding kit"
        assert db_session.get(Asset, laptop.id).quantity == 2
        assert roster_emails(db_session, hr_user) == ["emma@acme.com"]

    def test_respects_seat_limit(self, db_session, hr_user, laptop, employee, second_employee):
        hr_user.employee_limit = 1
        db_session.commit()
        make_member(db_session, hr_user, second_employee)

        with pytest.raises(SeatLimitReachedError):
            request_service.assign_directly(asset_id=laptop.id, employee_email=employee.email, hr_email=hr_user.email)

        assert requests_for(db_session, employee.email) == []
        assert db_session.get(Asset, laptop.id).quantity == 3

    def test_existing_member_can_receive_more(self, db_session, hr_user, laptop, employee):
        make_member(db_session, hr_user, employee)
        hr_user.employee_limit = 1
        db_session.commit()

        request_service.assign_directly(asset_id=laptop.id, employee_email=employee.email, hr_email=hr_user.email)
        request_service.assign_directly(asset_id=laptop.id, employee_email=employee.email, hr_email=hr_user.email)

        assert db_session.get(Asset, laptop.id).quantity == 1
        assert len(requests_for(db_session, employee.email)) == 2

    def test_out_of_stock(self, db_session, hr_user, employee):
        empty = make_asset(db_session, hr_user, quantity=0)

        with pytest.raises(OutOfStockError):
            request_service.assign_directly(asset_id=empty.id, employee_email=employee.email, hr_email=hr_user.email)
        assert roster_emails(db_session, hr_user) == []

    def test_only_owner_can_assign(self, db_session, laptop, employee, other_hr):
        with pytest.raises(ForbiddenError):
            request_service.assign_directly(asset_id=laptop.id, employee_email=employee.email, hr_email=other_hr.email)

    def test_hr_accounts_cannot_be_assigned(self, db_session, hr_user, laptop, other_hr):
        with pytest.raises(InvalidInputError):
            request_service.assign_directly(asset_id=laptop.id, employee_email=other_hr.email, hr_email=hr_user.email)

    def test_unknown_employee(self, db_session, hr_user, laptop):
        with pytest.raises(NotFoundError):
            request_service.assign_directly(asset_id=laptop.id, employee_email="ghost@acme.com", hr_email=hr_user.email)


class TestRemoveEmployee:
    def test_returns_held_assets_and_rejects_requests(self, db_session, hr_user, laptop, employee):
        phone = make_asset(db_session, hr_user, product_name="Phone", quantity=2)
        request_service.approve_request(_submit(laptop, employee).id)
        request_service.approve_request(_submit(phone, employee).id)
        pending = _submit(laptop, employee)
        denied = _submit(phone, employee)
        request_service.deny_request(denied.id)

        result = request_service.remove_employee(hr_email=hr_user.email, employee_email=employee.email)

        assert result == {"returned_assets": 2, "closed_requests": 4}
        assert db_session.get(Asset, laptop.id).quantity == 3
        assert db_session.get(Asset, phone.id).quantity == 2
        assert {r.status for r in requests_for(db_session, employee.email)} == {"rejected"}
        assert db_session.get(AssetRequest, pending.id).processed_at is not None
        assert roster_emails(db_session, hr_user) == []

    def test_only_touches_this_hr(self, db_session, hr_user, other_hr, laptop, employee):
        globex_phone = make_asset(db_session, other_hr, product_name="Phone", quantity=2)
        request_service.approve_request(_submit(laptop, employee).id)
        globex_req = _submit(globex_phone, employee)
        request_service.approve_request(globex_req.id)

        request_service.remove_employee(hr_email=hr_user.email, employee_email=employee.email)

        assert db_session.get(AssetRequest, globex_req.id).status == "approved"
        assert db_session.get(Asset, globex_phone.id).quantity == 1
        assert roster_emails(db_session, other_hr) == ["emma@acme.com"]

    def test_deleted_asset_is_skipped(self, db_session, hr_user, laptop, employee):
        phone = make_asset(db_session, hr_user, product_name="Phone", quantity=1)
        request_service.approve_request(_submit(laptop, employee).id)
        phone_req = _submit(phone, employee)
        request_service.approve_request(phone_req.id)
        asset_service.delete_asset(phone.id, hr_email=hr_user.email)

        result = request_service.remove_employee(hr_email=hr_user.email, employee_email=employee.email)

        assert result["returned_assets"] == 1
        assert db_session.get(AssetRequest, phone_req.id).status == "rejected"
        assert db_session.get(AssetRequest, phone_req.id).asset_name == "Phone"

    def test_not_on_roster(self, db_session, hr_user, employee):
        with pytest.raises(NotFoundError):
            request_service.remove_employee(hr_email=hr_user.email, employee_email=employee.email)

    def test_frees_a_seat(self, db_session, hr_user, laptop, employee, second_employee):
        hr_user.employee_limit = 1
        db_session.commit()
        request_service.approve_request(_submit(laptop, employee).id)

        request_service.remove_employee(hr_email=hr_user.email, employee_email=employee.email)
        request_service.approve_request(_submit(laptop, second_employee).id)

        assert roster_emails(db_session, hr_user) == ["frank@acme.com"]


class TestDeleteAsset:
    def test_rejects_pending_and_unlinks_requests(self, db_session, hr_user, laptop, employee, second_employee):
        approved = _submit(laptop, employee)
        request_service.approve_request(approved.id)
        pending = _submit(laptop, second_employee)

        result = asset_service.delete_asset(laptop.id, hr_email=hr_user.email)

        assert result == {"deleted_count": 1, "rejected_requests": 1}
        assert db_session.get(Asset, laptop.id) is None
        assert db_session.get(AssetRequest, pending.id).status == "rejected"
        assert db_session.get(AssetRequest, approved.id).status == "approved"
        assert db_session.get(AssetRequest, approved.id).asset_id is None


class TestRequestListings:
    def test_hr_listing_filters(self, db_session, hr_user, laptop, employee, second_employee):
        first = _submit(laptop, employee)
        _submit(laptop, second_employee)
        request_service.approve_request(first.id)

        everything = request_service.list_hr_requests(hr_user.email)
        pending = request_service.list_hr_requests(hr_user.email, status="pending")
        by_name = request_service.list_hr_requests(hr_user.email, search="emma")

        assert everything["count"] == 2
        assert [r["requester_email"] for r in pending["items"]] == ["frank@acme.com"]
        assert [r["id"] for r in by_name["items"]] == [first.id]

    def test_hr_listing_excludes_other_companies(self, db_session, laptop, employee, other_hr):
        _submit(laptop, employee)

        assert request_service.list_hr_requests(other_hr.email)["count"] == 0

    def test_invalid_status_filter(self, db_session, hr_user):
        with pytest.raises(InvalidInputError):
            request_service.list_hr_requests(hr_user.email, status="lost")

    def test_employee_listing_filters(self, db_session, hr_user, laptop, employee):
        mouse = make_asset(db_session, hr_user, product_name="Wireless Mouse", product_type="Non-returnable")
        _submit(laptop, employee)
        _submit(mouse, employee)

        by_type = request_service.list_employee_requests(employee.email, asset_type="Non-returnable")
        by_name = request_service.list_employee_requests(employee.email, search="latitude")
        paged = request_service.list_employee_requests(employee.email, page=1, per_page=1)

        assert [r["asset_name"] for r in by_type["items"]] == ["Wireless Mouse"]
        assert [r["asset_name"] for r in by_name["items"]] == ["Dell Latitude"]
        assert paged["count"] == 1
        assert paged["pagination"]["total"] == 2
        assert paged["pagination"]["has_next"] is True

    def test_search_treats_wildcards_literally(self, db_session, laptop, employee):
        _submit(laptop, employee)

        assert request_service.list_employee_requests(employee.email, search="%")["count"] == 0

    def test_unknown_user_has_no_requests(self, db_session):
        make_user(db_session, "nobody@acme.com")
        assert request_service.list_employee_requests("nobody@acme.com") == {"items": [], "count": 0}
