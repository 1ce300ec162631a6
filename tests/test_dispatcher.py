"""Tests for warble.routing.dispatcher — prefix routing and the module stack."""

import asyncio
from contextlib import contextmanager

from warble.context import (
    dispatcher_var,
    filters_var,
    get_dispatcher,
    module_stack_depth,
    module_stack_path,
    module_stack_var,
)
from warble.errors import HTTPError, NotFound
from warble.http.headers import Headers
from warble.http.request import Request
from warble.http.response import Response
from warble.modules.actions import ActionTable
from warble.modules.module import Module
from warble.routing.dispatcher import DISPATCH_ID_KEY, DISPATCH_TIMER, Dispatcher
from warble.stats import StatsRecorder


def _module(name: str, domain: str | None = None, **kwargs) -> tuple[Module, ActionTable]:
    table = ActionTable()
    return Module(name, domain=domain, actions=table, **kwargs), table


def _dispatcher(*modules: Module, **kwargs) -> Dispatcher:
    return Dispatcher({m.name: m for m in modules}, **kwargs)


def _get(path: str, **kwargs) -> Request:
    return Request(method="GET", path=path, **kwargs)


class TestPrefixRouting:
    async def test_first_registered_module_wins(self) -> None:
        users, users_table = _module("users", "/api/users")
        api, api_table = _module("api", "/api/")

        @users_table.get("/{id}")
        def show_user(id: str):
            return {"module": "users", "id": id}

        @api_table.get("/{rest:path}")
        def anything(rest: str):
            return {"module": "api", "rest": rest}

        response = await _dispatcher(users, api).dispatch(_get("/api/users/5"))
        assert response.status == 200
        assert response.json_body() == {"module": "users", "id": "5"}

        response = await _dispatcher(api, users).dispatch(_get("/api/users/5"))
        assert response.json_body() == {"module": "api", "rest": "users/5"}

    async def test_declining_module_lets_next_try(self) -> None:
        first, first_table = _module("first", "/api")
        second, second_table = _module("second", "/api")

        @first_table.get("/other")
        def other():
            return "first"

        @second_table.get("/users")
        def users():
            return "second"

        response = await _dispatcher(first, second).dispatch(_get("/api/users"))
        assert response.text == "second"

    async def test_domain_match_ignores_case(self) -> None:
        shop, table = _module("shop", "/Shop")

        @table.get("/items")
        def items():
            return ["apple"]

        response = await _dispatcher(shop).dispatch(_get("/SHOP/items"))
        assert response.status == 200
        assert response.json_body() == ["apple"]

    async def test_domain_is_normalized(self) -> None:
        shop, table = _module("shop", "shop//")

        @table.get("/items")
        def items():
            return "ok"

        response = await _dispatcher(shop).dispatch(_get("/shop/items"))
        assert response.text == "ok"

    async def test_url_is_normalized(self) -> None:
        shop, table = _module("shop")

        @table.get("/items")
        def items():
            return "ok"

        response = await _dispatcher(shop).dispatch(_get("//shop//items"))
        assert response.text == "ok"

    async def test_method_mismatch_falls_back(self) -> None:
        shop, table = _module("shop")

        @table.post("/items")
        def create():
            return "created"

        response = await _dispatcher(shop).dispatch(_get("/shop/items"))
        assert response.status == 400


class TestFallback:
    async def test_no_module_matches(self) -> None:
        response = await _dispatcher().dispatch(_get("/nowhere"))
        assert response.status == 400
        assert response.content_type == "application/json"
        assert response.json_body() == {"error": {"message": "action not found", "code": "400"}}

    async def test_filter_failure_reported(self) -> None:
        shop, table = _module("shop")

        @table.filter("Auth", message="missing token", status=401)
        def has_token(request: Request) -> bool:
            return "authorization" in request.headers

        @table.get("/orders")
        def orders():
            return []

        dispatcher = _dispatcher(shop)
        response = await dispatcher.dispatch(_get("/shop/orders"))
        assert response.status == 401
        assert response.json_body() == {"error": {"message": "[Auth] missing token", "code": 401}}

        authorized = _get("/shop/orders", headers=Headers([("Authorization", "Bearer x")]))
        response = await dispatcher.dispatch(authorized)
        assert response.status == 200

    async def test_filter_failures_do_not_leak_between_dispatches(self) -> None:
        shop, table = _module("shop")

        @table.filter("Auth", message="missing token", status=401)
        def deny(request: Request) -> bool:
            return False

        @table.get("/orders")
        def orders():
            return []

        dispatcher = _dispatcher(shop)
        await dispatcher.dispatch(_get("/shop/orders"))
        response = await dispatcher.dispatch(_get("/elsewhere"))
        assert response.status == 400
        assert filters_var.get() is None


class TestErrors:
    async def test_handler_exception_becomes_500(self) -> None:
        shop, table = _module("shop")

        @table.get("/boom")
        def boom():
            raise RuntimeError("kaboom")

        stats = StatsRecorder()
        response = await _dispatcher(shop, stats=stats).dispatch(_get("/shop/boom"))
        assert response.status == 500
        assert response.json_body() == {
            "error": {"message": "internal server error", "code": 500}
        }
        assert stats.counter("dispatch.errors") == 1

    async def test_stack_unwound_after_handler_raises(self) -> None:
        shop, table = _module("shop")
        seen = []

        @table.get("/boom")
        def boom():
            seen.append(module_stack_var.get())
            raise RuntimeError("kaboom")

        await _dispatcher(shop).dispatch(_get("/shop/boom"))
        assert seen[0] is not None
        assert seen[0].depth() == 0
        assert module_stack_var.get() is None

    async def test_http_error_keeps_status(self) -> None:
        shop, table = _module("shop")

        @table.get("/items/{id}")
        def item(id: str):
            raise NotFound(f"no item {id}")

        response = await _dispatcher(shop).dispatch(_get("/shop/items/9"))
        assert response.status == 404
        assert response.json_body()["error"]["message"] == "no item 9"

    async def test_http_error_from_async_action(self) -> None:
        shop, table = _module("shop")

        @table.get("/forbidden")
        async def forbidden():
            raise HTTPError(403, "nope")

        response = await _dispatcher(shop).dispatch(_get("/shop/forbidden"))
        assert response.status == 403
        assert response.json_body() == {"error": {"message": "nope", "code": 403}}

    async def test_http_error_through_user_context_manager(self) -> None:
        shop, table = _module("shop")

        @contextmanager
        def guarded():
            yield

        @table.get("/guarded")
        def guarded_action():
            with guarded():
                raise NotFound("gone")

        response = await _dispatcher(shop).dispatch(_get("/shop/guarded"))
        assert response.status == 404

    async def test_http_error_headers_copied(self) -> None:
        shop, table = _module("shop")

        @table.get("/limited")
        def limited():
            raise HTTPError(429, "slow down", headers=(("Retry-After", "5"),))

        response = await _dispatcher(shop).dispatch(_get("/shop/limited"))
        assert response.status == 429
        assert response.header("retry-after") == "5"

    async def test_context_vars_reset(self) -> None:
        shop, table = _module("shop")

        @table.get("/")
        def index():
            return "ok"

        await _dispatcher(shop).dispatch(_get("/shop"))
        assert module_stack_var.get() is None
        assert filters_var.get() is None
        assert dispatcher_var.get(None) is None


class TestModuleStack:
    async def test_nested_dispatch_shows_chain(self) -> None:
        shop, shop_table = _module("shop")
        cart, cart_table = _module("cart")

        @shop_table.get("/checkout")
        async def checkout():
            return await get_dispatcher().dispatch(_get("/cart/view"))

        @cart_table.get("/view")
        def view():
            return {"path": module_stack_path(), "depth": module_stack_depth()}

        response = await _dispatcher(shop, cart).dispatch(_get("/shop/checkout"))
        assert response.json_body() == {"path": "/shop/cart", "depth": 2}

    async def test_stack_path_uses_namespace(self) -> None:
        shop, table = _module("shop-module", "/shop", namespace="shop")

        @table.get("/where")
        def where():
            return module_stack_path()

        response = await _dispatcher(shop).dispatch(_get("/shop/where"))
        assert response.text == "/shop"

    async def test_concurrent_dispatches_have_separate_stacks(self) -> None:
        shop, table = _module("shop")

        @table.get("/depth")
        async def depth():
            await asyncio.sleep(0)
            return {"depth": module_stack_depth()}

        dispatcher = _dispatcher(shop)
        responses = await asyncio.gather(
            *(dispatcher.dispatch(_get("/shop/depth")) for _ in range(5))
        )
        assert [r.json_body()["depth"] for r in responses] == [1] * 5


class TestInstrumentation:
    async def test_dispatching_id_assigned(self) -> None:
        first = _get("/x")
        second = _get("/x")
        dispatcher = _dispatcher()
        await dispatcher.dispatch(first)
        await dispatcher.dispatch(second)
        assert len(first.context[DISPATCH_ID_KEY]) == 32
        assert first.context[DISPATCH_ID_KEY] != second.context[DISPATCH_ID_KEY]

    async def test_timer_and_counters(self) -> None:
        stats = StatsRecorder()
        request = _get("/missing", query_string="a=1")
        await _dispatcher(stats=stats).dispatch(request)

        assert stats.counter("dispatch.requests") == 1
        assert stats.counter("dispatch.fallback") == 1
        assert stats.pending == 0
        (timing,) = stats.timings
        assert timing.name == DISPATCH_TIMER
        assert timing.key == f"GET /missing?a=1 {request.context[DISPATCH_ID_KEY]}"

    async def test_broken_sink_never_fails_dispatch(self, caplog) -> None:
        class BrokenStats:
            def start(self, name: str, key: str) -> None:
                raise RuntimeError("sink down")

            def stop(self, name: str, key: str) -> None:
                raise RuntimeError("sink down")

            def increment(self, name: str, amount: int = 1) -> None:
                raise RuntimeError("sink down")

        shop, table = _module("shop")

        @table.get("/")
        def index():
            return Response("ok")

        response = await _dispatcher(shop, stats=BrokenStats()).dispatch(_get("/shop"))
        assert response.text == "ok"
        assert "Instrumentation" in caplog.text


class TestModuleSet:
    def test_lookup_by_namespace_ignores_case(self) -> None:
        shop, _ = _module("shop-module", namespace="Shop")
        dispatcher = _dispatcher(shop)
        assert dispatcher.get_module_by_namespace("shop") is shop
        assert dispatcher.get_module_by_namespace("cart") is None
        assert dispatcher.get_module("shop-module") is shop
        assert dispatcher.installed_modules() == [shop]

    async def test_replace_modules(self) -> None:
        old, old_table = _module("shop")
        new, new_table = _module("shop")

        @old_table.get("/")
        def old_index():
            return "old"

        @new_table.get("/")
        def new_index():
            return "new"

        dispatcher = _dispatcher(old)
        assert (await dispatcher.dispatch(_get("/shop"))).text == "old"
        dispatcher.replace_modules({"shop": new})
        assert (await dispatcher.dispatch(_get("/shop"))).text == "new"
        assert dispatcher.modules["shop"] is new
