"""Cart and custom-box contents kept in the signed session cookie.

Both stores hold line items ``{product_id, quantity, price_cents, name,
image}`` plus a postcard message. The custom box also remembers the chosen
box type. Stores work on any mutable mapping, so they are usable outside a
request as well.
"""

CART_KEY = "giftbox-cart"
CUSTOM_BOX_KEY = "giftbox-custom-box"


class LineItemStore:
    key = None

    def __init__(self, backing):
        self._backing = backing

    @property
    def state(self):
        state = self._backing.get(self.key)
        if not isinstance(state, dict):
            state = self.empty()
        return state

    def empty(self):
        return {"items": [], "postcard_text": ""}

    def _save(self, state):
        self._backing[self.key] = state
        # flask's session only notices top-level assignment; nested lists need this
        if hasattr(self._backing, "modified"):
            self._backing.modified = True

    @property
    def items(self):
        return list(self.state["items"])

    @property
    def postcard_text(self):
        return self.state.get("postcard_text", "")

    def add_item(self, product_id, quantity=1, price_cents=0, name=None, image=None):
        state = self.state
        for it in state["items"]:
            if it["product_id"] == product_id:
                it["quantity"] += quantity
                break
        else:
            state["items"].append({"product_id": product_id, "quantity": quantity,
                                   "price_cents": price_cents, "name": name, "image": image})
        self._save(state)

    def remove_item(self, product_id):
        state = self.state
        state["items"] = [it for it in state["items"] if it["product_id"] != product_id]
        self._save(state)

    def update_quantity(self, product_id, quantity):
        if quantity <= 0:
            self.remove_item(product_id)
            return
        state = self.state
        for it in state["items"]:
            if it["product_id"] == product_id:
                it["quantity"] = quantity
        self._save(state)

    def set_postcard_text(self, text):
        state = self.state
        state["postcard_text"] = text or ""
        self._save(state)

    def clear(self):
        self._save(self.empty())

    def total(self):
        return sum(it["price_cents"] * it["quantity"] for it in self.state["items"])

    def count(self):
        return sum(it["quantity"] for it in self.state["items"])

    def to_dict(self):
        return {**self.state, "total_cents": self.total(), "count": self.count()}


class CartStore(LineItemStore):
    key = CART_KEY


class CustomBoxStore(LineItemStore):
    key = CUSTOM_BOX_KEY

    def empty(self):
        return {"items": [], "postcard_text": "", "box_type": None}

    @property
    def box_type(self):
        return self.state.get("box_type")

    def set_box_type(self, box_type):
        state = self.state
        state["box_type"] = box_type
        self._save(state)

    def clear_box(self):
        """Drop items, box type and postcard. The total never includes the
        box type price; staff settle packaging when the box is assembled."""
        self.clear()
