"""Integration tests for DocumentLifecycleService

Runs the service against the SQLAlchemy document store and audit sink on
an in-memory SQLite database.
"""

import logging
import pytest
from decimal import Decimal
from unittest.mock import Mock
from uuid import uuid4

from sqlalchemy import select

from domain.access.confidentiality import ConfidentialityLevel
from domain.access.models import Principal
from domain.documents.errors import ErrorCode, ErrorKind, StoreError
from domain.documents.models import VersionType
from domain.documents.ports import AuditSinkPort
from files.service import DocumentLifecycleService
from infrastructure.repositories.file_repository import FileRepository
from infrastructure.repositories.user_repository import UserRepository
from models.audit_log import AuditLog


def audit_actions(db_session, document_id):
    rows = db_session.execute(
        select(AuditLog).where(AuditLog.entity_id == document_id).order_by(AuditLog.created_at)
    ).scalars().all()
    return [row.action for row in rows]


def set_version(store, db_session, document_id, version):
    assert store.update_document(document_id, {"version_number": Decimal(version)})
    db_session.commit()


class TestRegisterUpload:
    """Test registering uploaded files"""

    def test_register_public_file(self, service, store, db_session, alice):
        result = service.register_upload(
            owner=Principal.from_user(alice),
            name="handbook.pdf",
            file_url="files/handbook.pdf",
            file_size=512,
            confidentiality="public",
            assignees=["ignored"],
        )

        assert result.success is True
        document = store.get_document(result.value.id)
        assert document.version_number == Decimal("1.0")
        assert document.lock is None
        assert document.assignees == []
        assert document.confidentiality == ConfidentialityLevel.PUBLIC
        assert audit_actions(db_session, document.id) == ["file_uploaded"]

    def test_register_non_public_needs_assignees(self, service, store, alice):
        result = service.register_upload(
            owner=Principal.from_user(alice),
            name="salaries.xlsx",
            file_url="files/salaries.xlsx",
            file_size=10,
            confidentiality="secret",
            assignees=[],
        )

        assert result.success is False
        assert result.error.code == ErrorCode.MISSING_ASSIGNEES
        assert store.list_documents() == []

    def test_register_invalid_filename(self, service, alice):
        result = service.register_upload(
            owner=Principal.from_user(alice),
            name="../escape.pdf",
            file_url="files/escape.pdf",
            file_size=10,
            confidentiality="public",
        )

        assert result.error.code == ErrorCode.INVALID_FILE
        assert result.error.kind == ErrorKind.VALIDATION


class TestUpdateConfidentiality:
    """Test confidentiality edits on stored files"""

    def test_internal_file_edit_scenario(self, service, store, alice, carol, make_file):
        """Test internal → public fails, secret without assignees fails, secret with carol succeeds"""
        document = make_file(alice, "internal", ["someone"])
        owner = Principal.from_user(alice)

        lowered = service.update_confidentiality(document.id, owner, "public", [])
        assert lowered.error.code == ErrorCode.INVALID_LEVEL

        missing = service.update_confidentiality(document.id, owner, "secret", [])
        assert missing.error.code == ErrorCode.MISSING_ASSIGNEES

        # Nothing was applied by the failed attempts
        unchanged = store.get_document(document.id)
        assert unchanged.confidentiality == ConfidentialityLevel.INTERNAL
        assert unchanged.assignees == ["someone"]

        raised = service.update_confidentiality(document.id, owner, "secret", [str(carol.id)])
        assert raised.success is True
        assert raised.value.confidentiality == ConfidentialityLevel.SECRET
        assert raised.value.assignees == [str(carol.id)]

    def test_assignee_cannot_edit(self, service, internal_file, carol):
        """Test an assignee can read the file but only the owner or a manager edits it"""
        result = service.update_confidentiality(internal_file.id, Principal.from_user(carol), "secret", [str(carol.id)])

        assert result.error.code == ErrorCode.FORBIDDEN
        assert result.error.kind == ErrorKind.PERMISSION

    def test_outsider_edit_is_not_found(self, service, internal_file, bob):
        result = service.update_confidentiality(internal_file.id, Principal.from_user(bob), "secret", [str(bob.id)])

        assert result.error.code == ErrorCode.NOT_FOUND

    def test_manager_can_edit(self, service, internal_file, manager, carol):
        result = service.update_confidentiality(
            internal_file.id, Principal.from_user(manager), "top_secret", [str(carol.id)]
        )

        assert result.success is True

    def test_public_stays_without_assignees(self, service, public_file, alice):
        result = service.update_confidentiality(public_file.id, Principal.from_user(alice), "public", ["carol"])

        assert result.success is True
        assert result.value.assignees == []

    def test_edit_is_audited(self, service, db_session, internal_file, alice, carol):
        service.update_confidentiality(internal_file.id, Principal.from_user(alice), "confidential", [str(carol.id)])

        assert "confidentiality_changed" in audit_actions(db_session, internal_file.id)

    def test_missing_file(self, service, alice):
        result = service.update_confidentiality(uuid4(), Principal.from_user(alice), "secret", ["x"])
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_edit_from_outdated_level_is_rejected(self, db_session, service, internal_file, alice, manager, carol):
        """Test an edit validated against a level that has since been raised cannot lower it"""
        stale = service.store.get_document(internal_file.id)

        raised = service.update_confidentiality(
            internal_file.id, Principal.from_user(manager), "top_secret", [str(carol.id)]
        )
        assert raised.success is True

        class StaleStore(FileRepository):
            def get_document(self, document_id):
                return stale

        stale_service = DocumentLifecycleService(StaleStore(db_session), service.audit_sink, service.directory)
        result = stale_service.update_confidentiality(
            internal_file.id, Principal.from_user(alice), "confidential", [str(carol.id)]
        )

        assert result.error.code == ErrorCode.CONCURRENT_MODIFICATION
        assert result.error.kind == ErrorKind.CONFLICT
        assert service.store.get_document(internal_file.id).confidentiality == ConfidentialityLevel.TOP_SECRET


class TestCheckout:
    """Test checkOut"""

    def test_checkout_is_idempotent_for_holder(self, service, store, public_file, alice):
        """Test checking out twice keeps the lock and refreshes notes"""
        first = service.check_out(public_file.id, alice.id, "first pass")
        second = service.check_out(public_file.id, alice.id, "second pass")

        assert first.success is True
        assert second.success is True
        document = store.get_document(public_file.id)
        assert document.lock.holder_id == alice.id
        assert document.lock.notes == "second pass"

    def test_checkout_returns_retrievable_copy(self, service, public_file, alice):
        result = service.check_out(public_file.id, alice.id)

        assert result.value.file_url == public_file.file_url

    def test_second_user_rejected(self, service, public_file, alice, bob):
        service.check_out(public_file.id, alice.id)

        result = service.check_out(public_file.id, bob.id)

        assert result.success is False
        assert result.error.code == ErrorCode.ALREADY_LOCKED_BY_OTHER
        assert result.error.kind == ErrorKind.CONFLICT

    def test_checkout_keeps_version(self, service, store, public_file, alice):
        service.check_out(public_file.id, alice.id)

        assert store.get_document(public_file.id).version_number == Decimal("1.0")

    def test_checkout_missing_file(self, service, alice):
        result = service.check_out(uuid4(), alice.id)
        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.message == "File not found"

    def test_checkout_is_audited(self, service, db_session, public_file, alice):
        service.check_out(public_file.id, alice.id)
        assert "checked_out" in audit_actions(db_session, public_file.id)


class TestCheckIn:
    """Test checkIn"""

    def test_checkin_without_checkout(self, service, public_file, alice):
        result = service.check_in(public_file.id, alice.id)

        assert result.error.code == ErrorCode.NOT_LOCKED

    def test_checkin_by_non_holder(self, service, public_file, alice, bob):
        service.check_out(public_file.id, alice.id)

        result = service.check_in(public_file.id, bob.id)

        assert result.error.code == ErrorCode.NOT_HOLDER

    def test_checkin_clears_lock_and_increments_by_one(self, service, store, public_file, alice):
        service.check_out(public_file.id, alice.id, "edits")

        result = service.check_in(public_file.id, alice.id)

        assert result.success is True
        assert result.value == Decimal("2.0")
        document = store.get_document(public_file.id)
        assert document.lock is None
        assert document.version_number == Decimal("2.0")

    def test_checkin_records_superseded_version(self, service, store, public_file, alice):
        service.check_out(public_file.id, alice.id, "edits")
        service.check_in(public_file.id, alice.id)

        history = store.list_version_records(public_file.id)
        assert len(history) == 1
        assert history[0].version_number == Decimal("1.0")
        assert history[0].version_type == VersionType.MAJOR
        assert history[0].change_notes == "edits"
        assert history[0].uploader_name == "Alice"

    def test_checkin_from_minor_version(self, service, store, db_session, public_file, alice):
        set_version(store, db_session, public_file.id, "1.3")
        service.check_out(public_file.id, alice.id)

        assert service.check_in(public_file.id, alice.id).value == Decimal("2.0")

    def test_checkin_is_audited(self, service, db_session, public_file, alice):
        service.check_out(public_file.id, alice.id)
        service.check_in(public_file.id, alice.id)

        assert "checked_in" in audit_actions(db_session, public_file.id)


class TestCancelCheckout:
    """Test cancelCheckout"""

    def test_cancel_not_locked(self, service, public_file, alice):
        assert service.cancel_checkout(public_file.id, alice.id).error.code == ErrorCode.NOT_LOCKED

    def test_cancel_by_non_holder_non_manager(self, service, public_file, alice, bob):
        service.check_out(public_file.id, alice.id)

        result = service.cancel_checkout(public_file.id, bob.id, is_manager=False)

        assert result.error.code == ErrorCode.FORBIDDEN

    def test_cancel_by_holder(self, service, store, public_file, alice):
        service.check_out(public_file.id, alice.id, "oops")

        assert service.cancel_checkout(public_file.id, alice.id).success is True
        document = store.get_document(public_file.id)
        assert document.lock is None

    def test_manager_force_cancel(self, service, store, db_session, public_file, alice, manager, caplog):
        """Test manager clears someone else's lock without changing version"""
        service.check_out(public_file.id, alice.id, "holding")

        with caplog.at_level(logging.WARNING, logger="files.service"):
            result = service.cancel_checkout(public_file.id, manager.id, is_manager=True)

        assert result.success is True
        document = store.get_document(public_file.id)
        assert document.lock is None
        assert document.version_number == Decimal("1.0")
        assert any("force-cancelled" in record.getMessage() for record in caplog.records)

        entry = db_session.execute(
            select(AuditLog).where(AuditLog.action == "checkout_cancelled")
        ).scalar_one()
        assert entry.details["forced"] is True
        assert entry.details["holder_id"] == str(alice.id)


class TestUploadNewVersion:
    """Test uploadNewVersion"""

    def test_minor_upload(self, service, store, public_file, alice):
        result = service.upload_new_version(
            public_file.id, alice.id, "files/contract-v2.docx", 4096, VersionType.MINOR, "typo fixes"
        )

        assert result.success is True
        assert result.value == Decimal("1.1")

        document = store.get_document(public_file.id)
        assert document.version_number == Decimal("1.1")
        assert document.file_url == "files/contract-v2.docx"
        assert document.file_size == 4096

        history = store.list_version_records(public_file.id)
        assert len(history) == 1
        snapshot = history[0]
        assert snapshot.version_number == Decimal("1.0")
        assert snapshot.file_url == public_file.file_url
        assert snapshot.file_size == public_file.file_size
        assert snapshot.change_notes == "typo fixes"
        assert snapshot.metadata["name"] == public_file.name

    @pytest.mark.parametrize("version_type,expected", [
        (VersionType.MINOR, Decimal("2.4")),
        (VersionType.MAJOR, Decimal("3.0")),
    ])
    def test_bump_from_2_3(self, service, store, db_session, public_file, alice, version_type, expected):
        set_version(store, db_session, public_file.id, "2.3")

        result = service.upload_new_version(public_file.id, alice.id, "files/new.docx", 1, version_type)

        assert result.value == expected
        assert store.get_document(public_file.id).version_number == expected

    def test_history_is_ascending(self, service, store, public_file, alice):
        for n in range(3):
            service.upload_new_version(public_file.id, alice.id, f"files/v{n}.docx", 1, VersionType.MINOR)

        versions = [record.version_number for record in service.get_version_history(public_file.id)]
        assert versions == [Decimal("1.0"), Decimal("1.1"), Decimal("1.2")]
        assert service.get_latest_version(public_file.id) == Decimal("1.3")

    def test_locked_by_other(self, service, public_file, alice, manager):
        service.check_out(public_file.id, manager.id)

        result = service.upload_new_version(public_file.id, alice.id, "files/x.docx", 1, VersionType.MINOR)

        assert result.error.code == ErrorCode.LOCKED_BY_OTHER
        assert result.error.message == "Cannot upload new version: File is checked out by another user"

    def test_holder_can_upload_and_keeps_lock(self, service, store, public_file, alice):
        service.check_out(public_file.id, alice.id)

        result = service.upload_new_version(public_file.id, alice.id, "files/x.docx", 1, VersionType.MAJOR)

        assert result.value == Decimal("2.0")
        assert store.get_document(public_file.id).lock.holder_id == alice.id

    def test_non_owner_forbidden(self, service, public_file, bob):
        result = service.upload_new_version(public_file.id, bob.id, "files/x.docx", 1, VersionType.MINOR)

        assert result.error.code == ErrorCode.FORBIDDEN
        assert result.error.message == "You do not have permission to upload a new version of this file"

    @pytest.mark.parametrize("who", ["manager", "task_manager"])
    def test_managers_can_upload(self, service, public_file, who, request):
        user = request.getfixturevalue(who)

        result = service.upload_new_version(public_file.id, user.id, "files/x.docx", 1, VersionType.MINOR)

        assert result.success is True

    def test_admin_alone_cannot_upload(self, service, public_file, admin):
        result = service.upload_new_version(public_file.id, admin.id, "files/x.docx", 1, VersionType.MINOR)

        assert result.error.code == ErrorCode.FORBIDDEN

    def test_missing_file(self, service, alice):
        result = service.upload_new_version(uuid4(), alice.id, "files/x.docx", 1, VersionType.MINOR)
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_upload_is_audited(self, service, db_session, public_file, alice):
        service.upload_new_version(public_file.id, alice.id, "files/x.docx", 1, VersionType.MINOR, "notes")

        entry = db_session.execute(
            select(AuditLog).where(AuditLog.action == "version_uploaded")
        ).scalar_one()
        assert entry.user_id == alice.id
        assert entry.details["version_from"] == 1.0
        assert entry.details["version_to"] == 1.1
        assert entry.details["version_type"] == "minor"
        assert entry.details["file_name"] == public_file.name
        assert entry.details["change_notes"] == "notes"

    def test_audit_failure_is_not_fatal(self, db_session, store, public_file, alice, caplog):
        """Test a failing audit sink is logged and the upload still stands"""
        failing_sink = Mock(spec=AuditSinkPort)
        failing_sink.record.side_effect = StoreError("audit store down")
        service = DocumentLifecycleService(store, failing_sink, UserRepository(db_session))

        with caplog.at_level(logging.ERROR, logger="files.service"):
            result = service.upload_new_version(public_file.id, alice.id, "files/x.docx", 1, VersionType.MINOR)

        assert result.success is True
        assert store.get_document(public_file.id).version_number == Decimal("1.1")
        assert len(store.list_version_records(public_file.id)) == 1
        assert failing_sink.record.call_count == 1
        assert any("Failed to create audit log" in record.getMessage() for record in caplog.records)

    def test_stale_version_rolls_back(self, db_session, service, public_file, alice):
        """Test a lost compare-and-swap leaves no orphan version record"""
        stale = service.store.get_document(public_file.id)

        # Someone else moves the document to 1.1 first
        assert service.upload_new_version(public_file.id, alice.id, "files/a.docx", 1, VersionType.MINOR).success

        class StaleStore(FileRepository):
            def get_document(self, document_id):
                return stale

        stale_service = DocumentLifecycleService(StaleStore(db_session), service.audit_sink, service.directory)
        result = stale_service.upload_new_version(public_file.id, alice.id, "files/b.docx", 1, VersionType.MINOR)

        assert result.error.code == ErrorCode.CONCURRENT_MODIFICATION
        assert len(service.get_version_history(public_file.id)) == 1
        document = service.store.get_document(public_file.id)
        assert document.version_number == Decimal("1.1")
        assert document.file_url == "files/a.docx"


    def test_unknown_version_type_is_rejected(self, service, store, public_file, alice):
        result = service.upload_new_version(public_file.id, alice.id, "files/x.docx", 1, "patch")

        assert result.error.code == ErrorCode.INVALID_FILE
        assert result.error.kind == ErrorKind.VALIDATION
        assert store.get_document(public_file.id).version_number == Decimal("1.0")
        assert store.list_version_records(public_file.id) == []


class TestCanUploadVersion:
    """Test the upload permission helper"""

    def test_owner_allowed(self, service, public_file, alice):
        permission = service.can_upload_version(public_file.id, alice.id)
        assert permission.allowed is True
        assert permission.reason is None

    def test_missing_file(self, service, alice):
        permission = service.can_upload_version(uuid4(), alice.id)
        assert permission.allowed is False
        assert permission.reason == "File not found"

    def test_locked_by_other(self, service, public_file, alice, bob):
        service.check_out(public_file.id, bob.id)

        permission = service.can_upload_version(public_file.id, alice.id)

        assert permission.allowed is False
        assert permission.reason == "File is checked out by another user"

    def test_not_owner(self, service, public_file, bob):
        permission = service.can_upload_version(public_file.id, bob.id)
        assert permission.reason == "You do not have permission to upload versions"


class TestReadHelpers:
    """Test checkout info and checked-out listings"""

    def test_checkout_info(self, service, public_file, alice):
        service.check_out(public_file.id, alice.id, "rewriting section 2")

        info = service.get_checkout_info(public_file.id)

        assert info.checked_out is True
        assert info.checked_out_by == alice.id
        assert info.checkout_notes == "rewriting section 2"
        assert info.checker_name == "Alice"
        assert info.version_number == Decimal("1.0")

    def test_checkout_info_unlocked(self, service, public_file):
        info = service.get_checkout_info(public_file.id)
        assert info.checked_out is False
        assert info.checker_name is None

    def test_checkout_info_missing(self, service):
        assert service.get_checkout_info(uuid4()) is None

    def test_latest_version_defaults_to_one(self, service):
        assert service.get_latest_version(uuid4()) == Decimal("1.0")

    def test_my_checked_out_files(self, service, make_file, alice, bob):
        mine = make_file(alice, name="a.docx")
        theirs = make_file(alice, name="b.docx")
        service.check_out(mine.id, alice.id)
        service.check_out(theirs.id, bob.id)

        files = service.get_my_checked_out_files(alice.id)

        assert [f.id for f in files] == [mine.id]

    def test_list_visible_documents(self, service, make_file, alice, bob, carol):
        make_file(alice, "public", name="open.pdf")
        make_file(alice, "secret", [str(carol.id)], name="closed.pdf")

        names = {d.name for d in service.list_visible_documents(Principal.from_user(bob))}

        assert names == {"open.pdf"}

    def test_get_visible_document_hides_existence(self, service, make_file, alice, bob, carol):
        hidden = make_file(alice, "secret", [str(carol.id)], name="closed.pdf")

        result = service.get_visible_document(Principal.from_user(bob), hidden.id)

        assert result.error.code == ErrorCode.NOT_FOUND


class TestLifecycleVisibility:
    """Test lifecycle operations treat files the caller may not read as missing"""

    @pytest.fixture
    def secret_file(self, make_file, alice, carol):
        return make_file(alice, "secret", [str(carol.id)], name="closed.docx")

    def test_outsider_cannot_check_out(self, service, store, secret_file, bob):
        result = service.check_out(secret_file.id, bob.id)

        assert result.error.code == ErrorCode.NOT_FOUND
        assert store.get_document(secret_file.id).lock is None

    def test_outsider_cannot_check_in_or_cancel(self, service, store, secret_file, alice, bob):
        service.check_out(secret_file.id, alice.id)

        assert service.check_in(secret_file.id, bob.id).error.code == ErrorCode.NOT_FOUND
        assert service.cancel_checkout(secret_file.id, bob.id).error.code == ErrorCode.NOT_FOUND
        assert store.get_document(secret_file.id).lock.holder_id == alice.id

    def test_outsider_cannot_upload(self, service, store, secret_file, bob):
        result = service.upload_new_version(secret_file.id, bob.id, "files/x.docx", 1, VersionType.MINOR)
        permission = service.can_upload_version(secret_file.id, bob.id)

        assert result.error.code == ErrorCode.NOT_FOUND
        assert permission.allowed is False
        assert permission.reason == "File not found"
        assert store.get_document(secret_file.id).version_number == Decimal("1.0")

    def test_assignee_can_check_out(self, service, secret_file, carol):
        assert service.check_out(secret_file.id, carol.id).success is True

    def test_unknown_user_is_not_found(self, service, public_file):
        assert service.check_out(public_file.id, uuid4()).error.code == ErrorCode.NOT_FOUND


class TestStoreFailures:
    """Test infrastructure failures propagate"""

    def test_store_error_propagates(self, db_session, alice):
        broken_store = Mock()
        broken_store.get_document.side_effect = StoreError("database unreachable")
        service = DocumentLifecycleService(broken_store, Mock(spec=AuditSinkPort), UserRepository(db_session))

        with pytest.raises(StoreError):
            service.check_out(uuid4(), alice.id)
