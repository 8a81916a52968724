import pytest
from bearchat.models.credential import Credential
from bearchat.uow import (
    SQLAlchemyReadOnlyUnitOfWork as ROuow,
)
from bearchat.uow import (
    SQLAlchemyUnitOfWork as RWuow,
)
from sqlalchemy import text
from tests.factories.credential import CredentialFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, session):
        """
        Ensure that attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(Credential(username="ro", email="ro@example.com", password_hash="m$s$h"))
            uow.session.flush()
        session.rollback()

    def test_blocks_core_dml(self, session):
        """
        Ensure that raw SQL DML is blocked inside the RO UoW.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(text("UPDATE credentials SET verified = 1"))

    def test_allows_reads(self, session):
        """
        Read operations should work normally within RO UoW.
        """
        CredentialFactory()

        with ROuow() as uow:
            assert uow.session.query(Credential).count() >= 1

    def test_factory_rows_are_clean_for_lookups(self, session, hasher):
        cred = CredentialFactory(password="Sh4red-secret")

        assert cred not in session.dirty
        with ROuow() as uow:
            found = uow.credentials.find_by_username(cred.username)
            assert hasher.verify("Sh4red-secret", found.password_hash)

    def test_disallows_commit(self, session):
        """
        RO UoW must reject commit().
        """
        with ROuow() as uow, pytest.raises(RuntimeError):
            uow.commit()

    def test_guards_are_removed_on_exit(self, session):
        with ROuow():
            pass

        with RWuow() as uow:
            uow.credentials.insert(
                Credential(username="after", email="after@example.com", password_hash="m$s$h")
            )
        assert uow.credentials.find_by_username("after") is not None


class TestSQLAlchemyUnitOfWork:
    def test_commits_on_clean_exit(self, session):
        with RWuow() as uow:
            uow.credentials.insert(
                Credential(username="kept", email="kept@example.com", password_hash="m$s$h")
            )

        session.rollback()  # nothing pending; committed rows stay
        assert session.query(Credential).filter_by(username="kept").count() == 1

    def test_rolls_back_on_error(self, session):
        with pytest.raises(ValueError), RWuow() as uow:
            uow.credentials.insert(
                Credential(username="gone", email="gone@example.com", password_hash="m$s$h")
            )
            raise ValueError("boom")

        assert session.query(Credential).filter_by(username="gone").count() == 0
