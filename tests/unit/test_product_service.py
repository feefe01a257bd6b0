import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from justgold.repositories.category_repo import CategoryRepository
from justgold.repositories.product_repo import ProductRepository
from justgold.services.media_reconciliation import MediaReconciler
from justgold.services.product_service import ProductService

from tests.mocks.mock_storage import PUBLIC_BASE, make_media_store


class PgUniqueViolation(Exception):
    pgcode = "23505"


@pytest.fixture
def service():
    return ProductService(ProductRepository(), CategoryRepository(), PUBLIC_BASE)


def _run_failing_mutation(service, session, orig: Exception) -> HTTPException:
    reconciler = MediaReconciler(make_media_store())
    with pytest.raises(HTTPException) as err:
        with service._mutation(session, reconciler):
            raise IntegrityError("DELETE FROM products", {}, orig)
    return err.value


def test_foreign_key_violation_is_reported_as_still_referenced(service, mocker):
    session = mocker.Mock()

    err = _run_failing_mutation(
        service, session, Exception("FOREIGN KEY constraint failed")
    )

    assert err.status_code == 409
    assert "referenced" in err.detail
    assert "slug" not in err.detail
    session.rollback.assert_called_once()
    session.commit.assert_not_called()


@pytest.mark.parametrize(
    "orig",
    [
        Exception("UNIQUE constraint failed: products.slug"),
        PgUniqueViolation("duplicate key value"),
    ],
)
def test_unique_violation_is_reported_as_duplicate_slug(service, mocker, orig):
    err = _run_failing_mutation(service, mocker.Mock(), orig)

    assert err.status_code == 409
    assert "slug" in err.detail
