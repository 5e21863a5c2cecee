import pytest

from sarvaa.modules.cart.state import ShopperState


def test_add_same_product_increases_quantity_and_keeps_first_size():
    state = ShopperState()
    state.add(1, "7")
    state.add(1, "9")

    assert len(state.lines) == 1
    assert state.lines[0].qty == 2
    assert state.lines[0].size == "7"
    assert state.count == 2


def test_update_qty_never_drops_below_one():
    state = ShopperState()
    state.add(1, qty=2)

    state.update_qty(1, -5)
    assert state.find(1).qty == 1

    state.update_qty(1, +1)
    assert state.find(1).qty == 2
    assert state.update_qty(99, 1) is None


def test_set_qty_rejects_zero():
    state = ShopperState()
    state.add(1)
    with pytest.raises(ValueError):
        state.set_qty(1, 0)


def test_remove_and_clear():
    state = ShopperState()
    state.add(1)
    state.add(2, qty=3)

    assert state.remove(1) is True
    assert state.remove(1) is False
    assert state.count == 3

    state.clear()
    assert state.lines == []


def test_toggle_wishlist():
    state = ShopperState()
    assert state.toggle_wishlist(5) is True
    assert state.wishlist_count == 1
    assert state.toggle_wishlist(5) is False
    assert state.wishlist_count == 0


def test_move_to_cart_removes_from_wishlist():
    state = ShopperState()
    state.toggle_wishlist(5)
    state.move_to_cart(5)

    assert state.wishlist == []
    assert state.find(5).qty == 1


def test_from_dict_skips_malformed_entries():
    state = ShopperState.from_dict(
        [{"product_id": "3", "qty": 2, "size": "8"}, {"qty": 1}, {"product_id": "x"}],
        [4, "4", "nope", 6],
    )
    assert [(l.product_id, l.qty, l.size) for l in state.lines] == [(3, 2, "8")]
    assert state.wishlist == [4, 6]
