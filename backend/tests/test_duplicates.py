from crud import duplicates as crud_duplicates
from crud import inventory_items as crud_inventory_items


def test_lot_match_wins_regardless_of_name_and_case(db_session, make_item):
    existing = make_item(name="WBC Lyse", lot_number="LOT-77A")

    duplicate = crud_duplicates.find_duplicate_item(db_session, "Something Else", " lot-77a ")

    assert duplicate["item"].id == existing.id
    assert duplicate["is_lot"] is True


def test_name_match_only_among_items_without_lot(db_session, make_item):
    existing = make_item(name="Gauze")

    duplicate = crud_duplicates.find_duplicate_item(db_session, "gauze", None)

    assert duplicate["item"].id == existing.id
    assert duplicate["is_lot"] is False


def test_blank_lot_is_treated_as_missing(db_session, make_item):
    existing = make_item(name="Gauze")

    duplicate = crud_duplicates.find_duplicate_item(db_session, " GAUZE ", "   ")

    assert duplicate["item"].id == existing.id
    assert duplicate["is_lot"] is False


def test_new_lot_of_known_reagent_is_not_a_duplicate(db_session, make_item):
    make_item(name="WBC Lyse", lot_number="LOT-1")

    assert crud_duplicates.find_duplicate_item(db_session, "WBC Lyse", "LOT-2") is None
    assert crud_duplicates.find_duplicate_item(db_session, "WBC Lyse", None) is None


def test_unknown_lot_falls_back_to_name_match(db_session, make_item):
    existing = make_item(name="Gauze")

    duplicate = crud_duplicates.find_duplicate_item(db_session, "Gauze", "NEW-LOT")

    assert duplicate["item"].id == existing.id
    assert duplicate["is_lot"] is False


def test_deleted_items_do_not_count_as_duplicates(db_session, actor, make_item):
    item = make_item(name="Gauze", lot_number="L-9")
    crud_inventory_items.delete_inventory_item(db_session, item, actor)

    assert crud_duplicates.find_duplicate_item(db_session, "Gauze", "L-9") is None


def test_suggestions_include_deleted_names_and_known_lots(db_session, actor, make_item):
    make_item(name="WBC Lyse", lot_number="LOT-1")
    make_item(name="WBC Lyse", lot_number="LOT-2")
    make_item(name="Gauze")
    retired = make_item(name="WBC Diluent")
    crud_inventory_items.delete_inventory_item(db_session, retired, actor)

    suggestions = crud_duplicates.get_item_suggestions(db_session, "wbc")
    assert suggestions["names"] == ["WBC Diluent", "WBC Lyse"]
    assert suggestions["lots"] == []

    suggestions = crud_duplicates.get_item_suggestions(db_session, "WBC Lyse")
    assert suggestions["lots"] == ["LOT-1", "LOT-2"]

    assert crud_duplicates.get_item_suggestions(db_session, "  ") == {"names": [], "lots": []}


def test_suggestions_wait_for_two_characters(db_session, make_item):
    make_item(name="WBC Lyse")

    assert crud_duplicates.get_item_suggestions(db_session, "W") == {"names": [], "lots": []}
    assert crud_duplicates.get_item_suggestions(db_session, " w ") == {"names": [], "lots": []}
    assert crud_duplicates.get_item_suggestions(db_session, "wb")["names"] == ["WBC Lyse"]


def test_recall_lot_needs_minimum_length(db_session, make_item):
    existing = make_item(name="WBC Lyse", lot_number="AB1234", packaging_type="Box", section="Hematology")

    assert crud_duplicates.recall_lot(db_session, "ab") is None
    recalled = crud_duplicates.recall_lot(db_session, "ab1234")
    assert recalled.id == existing.id
    assert recalled.section == "Hematology"
    assert crud_duplicates.recall_lot(db_session, "ZZZ999") is None
