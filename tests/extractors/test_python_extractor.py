"""Tests for the Python AST extractor."""

from __future__ import annotations

import textwrap

import pytest

from documentor.extractors import PythonExtractor
from documentor.models import ComponentKind, FileType, QueryOperation


def _extract(path: str, source: str, file_type: FileType):
    return PythonExtractor().extract(path, textwrap.dedent(source).lstrip("\n"), file_type)


def test_fastapi_routes_functions_and_dependencies() -> None:
    result = _extract(
        "app/routes/users.py",
        """
        from fastapi import APIRouter, Depends

        from app.services.users import list_users

        router = APIRouter()


        @router.get("/users", dependencies=[Depends(require_token)])
        async def get_users(limit: int = 10):
            return list_users(limit)


        @router.api_route("/users/{user_id}", methods=["PUT", "PATCH"])
        def update_user(user_id: int, *args, **kwargs):
            return save_user(user_id)


        def _helper():
            pass
        """,
        FileType.ROUTE,
    )

    routes = [(route.method, route.path, route.handler, route.middleware) for route in result.routes]
    assert routes == [
        ("GET", "/users", "get_users", ("require_token",)),
        ("PUT", "/users/{user_id}", "update_user", ()),
        ("PATCH", "/users/{user_id}", "update_user", ()),
    ]

    functions = {fn.name: fn for fn in result.functions}
    assert functions["get_users"].is_async
    assert functions["get_users"].calls == ("list_users",)
    assert functions["update_user"].params == ("user_id", "*args", "**kwargs")
    assert not functions["_helper"].exported
    assert "fastapi" in result.imports


def test_flask_route_with_decorator_middleware() -> None:
    result = _extract(
        "server/views.py",
        """
        @app.route("/login", methods=["POST"])
        @login_required
        def login():
            return do_login()
        """,
        FileType.OTHER,
    )

    assert [(route.method, route.path, route.middleware) for route in result.routes] == [
        ("POST", "/login", ("login_required",))
    ]


def test_all_declaration_controls_exports() -> None:
    result = _extract(
        "app/services/billing.py",
        """
        __all__ = ["charge"]

        def charge():
            pass

        def refund():
            pass
        """,
        FileType.SERVICE,
    )

    exported = {fn.name: fn.exported for fn in result.functions}
    assert exported == {"charge": True, "refund": False}
    assert [component.kind for component in result.components] == [ComponentKind.SERVICE]


def test_django_urlpatterns() -> None:
    result = _extract(
        "shop/urls.py",
        """
        from django.urls import include, path

        from . import views

        urlpatterns = [
            path("orders/", views.order_list),
            path("orders/<int:pk>/", views.OrderDetail.as_view()),
            path("api/", include("shop.api.urls")),
        ]
        """,
        FileType.OTHER,
    )

    assert [(route.method, route.path, route.handler) for route in result.routes] == [
        ("ANY", "/orders/", "views.order_list"),
        ("ANY", "/orders/<int:pk>/", "views.OrderDetail"),
    ]


def test_queries_from_sql_orm_and_document_stores() -> None:
    result = _extract(
        "app/db/repository.py",
        """
        def load_users(session):
            return session.execute(text("SELECT id FROM users"))


        def list_orders(session):
            return session.query(Order).all()


        def add_order(session, data):
            session.add(Order(**data))


        def active_products():
            return Product.objects.filter(active=True)


        def remove_sessions(db):
            db.sessions.delete_many({"expired": True})
        """,
        FileType.DATABASE,
    )

    queries = [(query.function, query.operation, query.table) for query in result.queries]
    assert queries == [
        ("load_users", QueryOperation.READ, "users"),
        ("list_orders", QueryOperation.READ, "Order"),
        ("add_order", QueryOperation.WRITE, "Order"),
        ("active_products", QueryOperation.READ, "Product"),
        ("remove_sessions", QueryOperation.DELETE, "sessions"),
    ]
    assert result.queries[0].snippet == 'return session.execute(text("SELECT id FROM users"))'


def test_http_client_calls_become_service_component() -> None:
    result = _extract(
        "app/clients/inventory.py",
        """
        import requests


        def fetch_stock(sku):
            return requests.get(f"https://inventory.local/api/stock/{sku}")
        """,
        FileType.OTHER,
    )

    assert len(result.components) == 1
    component = result.components[0]
    assert component.kind is ComponentKind.SERVICE
    assert [(call.method, call.path, call.function) for call in component.api_calls] == [
        ("GET", "/api/stock/{sku}", "fetch_stock")
    ]


def test_syntax_errors_propagate_to_the_caller() -> None:
    with pytest.raises(SyntaxError):
        _extract("app/broken.py", "def broken(:\n    pass\n", FileType.OTHER)


def test_queries_sharing_a_line_keep_separate_keys() -> None:
    result = _extract(
        "app/db/stats.py",
        """
        def totals(session):
            return session.execute(text("SELECT count(*) FROM users")), session.execute(text("SELECT count(*) FROM orders"))
        """,
        FileType.DATABASE,
    )

    assert [(query.function, query.table, query.key) for query in result.queries] == [
        ("totals", "users", "app/db/stats.py:2"),
        ("totals", "orders", "app/db/stats.py:2#2"),
    ]
