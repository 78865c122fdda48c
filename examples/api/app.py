"""API — a JSON CRUD resource behind grouped middleware.

Demonstrates perch for API-only apps: route groups with middleware,
``"Name@method"`` controllers, path parameters, ``request.validate()``,
pagination envelopes, and a token guard that halts the chain.

Run:
    perch routes examples.api.app
    perch call examples.api.app GET /api/items -H "Authorization: Bearer demo"

Or serve ``app`` with any ASGI server.
"""

import threading
from dataclasses import asdict, dataclass, replace

from perch import App, AppConfig, Request, RouteRegistry
from perch.context import get_responder
from perch.errors import NotFound
from perch.middleware import Proceed

API_TOKEN = "demo"


@dataclass(frozen=True, slots=True)
class Item:
    id: int
    title: str
    done: bool = False


class ItemStore:
    """In-memory storage, shared across worker threads."""

    def __init__(self) -> None:
        self._items: dict[int, Item] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def all(self) -> list[Item]:
        with self._lock:
            return sorted(self._items.values(), key=lambda item: item.id)

    def get(self, item_id: int) -> Item:
        with self._lock:
            item = self._items.get(item_id)
        if item is None:
            raise NotFound(f"Item {item_id} not found")
        return item

    def add(self, title: str) -> Item:
        with self._lock:
            item = Item(id=self._next_id, title=title)
            self._items[item.id] = item
            self._next_id += 1
        return item

    def put(self, item: Item) -> None:
        with self._lock:
            self._items[item.id] = item

    def remove(self, item_id: int) -> Item:
        with self._lock:
            item = self._items.pop(item_id, None)
        if item is None:
            raise NotFound(f"Item {item_id} not found")
        return item


def create_app(config: AppConfig | None = None) -> App:
    app = App(config or AppConfig.from_env())
    inventory = ItemStore()

    # -- Middleware --

    @app.middleware("token")
    class RequireToken:
        def handle(self, request: Request, proceed: Proceed) -> None:
            if request.bearer_token() != API_TOKEN:
                get_responder().error("Unauthorized", 401)
                return
            proceed()

    # -- Controllers --

    @app.controller("Items")
    class ItemController:
        def index(self, request: Request) -> None:
            page = max(request.query.get_int("page", 1) or 1, 1)
            per_page = min(max(request.query.get_int("per_page", 10) or 10, 1), 100)
            items = inventory.all()
            window = items[(page - 1) * per_page : page * per_page]
            get_responder().paginate([asdict(i) for i in window], len(items), page, per_page)

        def show(self, request: Request, item_id: str) -> dict:
            return asdict(inventory.get(int(item_id)))

        def store(self, request: Request) -> None:
            data = request.validate({"title": ["required"]})
            item = inventory.add(str(data["title"]).strip())
            get_responder().json(asdict(item), 201, "Item created")

        def update(self, request: Request, item_id: str) -> dict:
            item = inventory.get(int(item_id))
            data = request.only(["title", "done"])
            updated = replace(
                item,
                title=str(data.get("title", item.title)).strip(),
                done=bool(data.get("done", item.done)),
            )
            inventory.put(updated)
            return asdict(updated)

        def destroy(self, request: Request, item_id: str) -> dict:
            return asdict(inventory.remove(int(item_id)))

    # -- Routes --

    @app.routes
    def web(routes: RouteRegistry) -> None:
        routes.get("/", lambda request: {"name": "items-api", "version": 1})

        def items(api: RouteRegistry) -> None:
            api.get("/items", "Items@index")
            api.post("/items", "Items@store")
            api.get("/items/{id}", "Items@show")
            api.put("/items/{id}", "Items@update")
            api.delete("/items/{id}", "Items@destroy")

        routes.group("/api", {"middleware": "token"}, items)

    return app


app = create_app()
