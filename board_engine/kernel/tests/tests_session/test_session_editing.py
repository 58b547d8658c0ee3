"""
Editor Session -- Editing Tests

Every mutation goes through one validated commit. A rejected edit leaves the
board, selection, and dirty flag exactly as they were.
"""

import random

import pytest

from board_engine.kernel.errors import (
    BoardError,
    CellOccupiedError,
    InvalidActionError,
    InvalidBoardError,
    LastPageError,
    NoSpaceError,
    OutOfBoundsError,
    UnknownButtonError,
    UnknownPageReferenceError,
)
from board_engine.kernel.tests.builders import fill_page, make_board
from board_engine.kernel.types import CoverImage, Grid, Home, Link, Speak, Youtube
from board_engine.kernel.validation import validate_board


def snapshot(session):
    return session.board.to_dict(), session.selected_button_id, session.is_dirty


# ============================================================================
# Buttons
# ============================================================================


class TestAddButton:
    def test_adds_and_selects(self, loaded):
        button = loaded.add_button(1, 1, "Yes")
        assert loaded.current_page.find_button(button.id).label == "Yes"
        assert loaded.selected_button_id == button.id
        assert loaded.is_dirty

    def test_default_action_speaks_label(self, loaded):
        button = loaded.add_button(1, 1, "Yes")
        assert button.action == Speak(text="Yes")

    def test_extra_fields(self, loaded):
        button = loaded.add_button(1, 1, "Home", action=Home(), color="blue", self_closing=True)
        stored = loaded.current_page.find_button(button.id)
        assert stored.action == Home()
        assert stored.color == "blue"
        assert stored.self_closing is True

    def test_onto_other_page(self, nav):
        button = nav.add_button(1, 1, "Yes", page_id="page_c")
        assert nav.board.find_page("page_c").find_button(button.id) is not None
        assert nav.current_page_id == "page_a"

    def test_occupied_cell_rejected(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(CellOccupiedError):
            loaded.add_button(0, 0, "Clash")
        assert snapshot(loaded) == before

    def test_out_of_bounds_rejected(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(OutOfBoundsError):
            loaded.add_button(3, 3, "Out")
        assert snapshot(loaded) == before

    def test_unknown_page_rejected(self, loaded):
        with pytest.raises(UnknownPageReferenceError):
            loaded.add_button(1, 1, "Yes", page_id="page_gone")

    def test_rejection_is_logged(self, loaded, caplog):
        with pytest.raises(CellOccupiedError):
            loaded.add_button(0, 0, "Clash")
        assert "add_button rejected" in caplog.text


class TestUpdateButton:
    def test_update_fields(self, loaded):
        button = loaded.update_button("btn_hello", label="Hi", spoken_text="Hi there")
        assert button.label == "Hi"
        assert button.spoken_text == "Hi there"
        assert loaded.is_dirty

    def test_move(self, loaded):
        button = loaded.update_button("btn_hello", row=2, col=1)
        assert (button.row, button.col) == (2, 1)

    def test_move_onto_occupied_rejected(self, loaded):
        loaded.add_button(1, 1, "Yes", button_id="btn_yes")
        before = snapshot(loaded)
        with pytest.raises(CellOccupiedError):
            loaded.update_button("btn_yes", row=0, col=0)
        assert snapshot(loaded) == before

    def test_blank_label_rejected(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(InvalidBoardError):
            loaded.update_button("btn_hello", label="  ")
        assert snapshot(loaded) == before

    def test_unknown_button(self, loaded):
        with pytest.raises(UnknownButtonError):
            loaded.update_button("btn_gone", label="x")


class TestUpdateButtonAction:
    def test_switch_type_rebuilds_action(self, loaded):
        loaded.update_button_action("btn_hello", "type", "youtube")
        button = loaded.update_button_action("btn_hello", "videoId", "abc")
        assert button.action == Youtube(video_id="abc", title="")

        button = loaded.update_button_action("btn_hello", "type", "speak")
        assert button.action == Speak(text="Hello")

    def test_set_link_target(self, nav):
        nav.update_button_action("btn_to_b", "toPageId", "page_c")
        assert nav.board.find_button("btn_to_b")[1].action == Link(to_page_id="page_c")

    def test_foreign_field_rejected(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(InvalidActionError):
            loaded.update_button_action("btn_hello", "toPageId", "page_a")
        assert snapshot(loaded) == before

    def test_unknown_type_rejected(self, loaded):
        with pytest.raises(InvalidActionError):
            loaded.update_button_action("btn_hello", "type", "teleport")


class TestDeleteButton:
    def test_delete_clears_selection(self, loaded):
        loaded.select_button("btn_hello")
        loaded.delete_button("btn_hello")
        assert loaded.current_page.buttons == []
        assert loaded.selected_button_id is None

    def test_delete_unknown(self, loaded):
        with pytest.raises(UnknownButtonError):
            loaded.delete_button("btn_gone")


class TestDuplicateButton:
    def test_next_free_cell(self, loaded):
        copy_ = loaded.duplicate_button("btn_hello")
        assert (copy_.row, copy_.col) == (0, 1)
        assert copy_.label == "Hello Copy"
        assert copy_.id != "btn_hello"
        assert copy_.action == Speak(text="Hello")
        assert loaded.selected_button_id == copy_.id

    def test_scan_wraps_around(self, session):
        board = make_board(2, 2)
        fill_page(board.pages[0], board.grid, skip={(0, 0)})
        session.load_board(board)
        copy_ = session.duplicate_button("btn_page_a_1_1")
        assert (copy_.row, copy_.col) == (0, 0)

    def test_full_page(self, session):
        board = make_board(2, 2)
        fill_page(board.pages[0], board.grid)
        session.load_board(board)
        before = snapshot(session)
        with pytest.raises(NoSpaceError):
            session.duplicate_button("btn_page_a_0_0")
        assert snapshot(session) == before

    def test_video_region_cannot_be_duplicated(self, loaded):
        player = loaded.add_video_player(1, 1, "abc")
        with pytest.raises(UnknownButtonError):
            loaded.duplicate_button(player.id)


# ============================================================================
# Video regions
# ============================================================================


class TestVideoRegions:
    def test_add_update_delete(self, loaded):
        player = loaded.add_video_player(1, 0, "abc", title="Song", row_span=2, col_span=2)
        assert loaded.current_page.find_video_player(player.id).title == "Song"

        updated = loaded.update_video_player(player.id, title="Other", col_span=3)
        assert updated.title == "Other"
        assert updated.col_span == 3

        loaded.delete_video_player(player.id)
        assert loaded.current_page.video_players == []

    def test_region_over_button_rejected(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(CellOccupiedError):
            loaded.add_video_player(0, 0, "abc", col_span=2)
        assert snapshot(loaded) == before

    def test_button_under_region_rejected(self, loaded):
        loaded.add_video_player(1, 1, "abc", row_span=2, col_span=2)
        with pytest.raises(CellOccupiedError):
            loaded.add_button(2, 2, "Under")


# ============================================================================
# Pages
# ============================================================================


class TestPages:
    def test_add_page_becomes_current(self, loaded):
        page = loaded.add_page()
        assert page.name == "Page 2"
        assert loaded.current_page_id == page.id
        assert loaded.board.pages[-1].id == page.id

    def test_rename(self, nav):
        nav.rename_page("page_b", "Drinks")
        assert nav.board.find_page("page_b").name == "Drinks"

    def test_rename_blank_rejected(self, nav):
        before = snapshot(nav)
        with pytest.raises(InvalidBoardError):
            nav.rename_page("page_b", "   ")
        assert snapshot(nav) == before

    def test_delete_current_selects_same_index(self, nav):
        nav.set_current_page("page_b")
        nav.delete_page("page_b")
        assert [p.id for p in nav.board.pages] == ["page_a", "page_c"]
        assert nav.current_page_id == "page_c"

    def test_delete_current_last_index_clamps(self, nav):
        nav.set_current_page("page_c")
        nav.delete_page("page_c")
        assert nav.current_page_id == "page_b"

    def test_delete_other_page_keeps_current(self, nav):
        nav.delete_page("page_c")
        assert nav.current_page_id == "page_a"

    def test_delete_only_page_refused(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(LastPageError):
            loaded.delete_page("page_a")
        assert snapshot(loaded) == before

    def test_delete_unknown_page(self, nav):
        with pytest.raises(UnknownPageReferenceError):
            nav.delete_page("page_gone")

    def test_reorder(self, nav):
        nav.reorder_pages(2, 0)
        assert [p.id for p in nav.board.pages] == ["page_c", "page_a", "page_b"]
        assert nav.board.home_page.id == "page_c"
        assert nav.is_dirty

    def test_reorder_noop_is_not_an_edit(self, nav):
        nav.reorder_pages(1, 1)
        nav.reorder_pages(0, 9)
        assert not nav.is_dirty


# ============================================================================
# Board-level edits
# ============================================================================


class TestBoardEdits:
    def test_resize_drops_and_deselects(self, loaded):
        loaded.add_button(2, 2, "Corner")
        loaded.resize_grid(2, 2)
        assert loaded.board.grid == Grid(2, 2)
        assert [b.id for b in loaded.current_page.buttons] == ["btn_hello"]
        assert loaded.selected_button_id is None

    def test_resize_invalid_rejected(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(OutOfBoundsError):
            loaded.resize_grid(0, 3)
        with pytest.raises(OutOfBoundsError):
            loaded.resize_grid(26, 3)
        assert snapshot(loaded) == before

    def test_update_board(self, loaded):
        cover = CoverImage(symbol_path="food/plate", background_color="#000000")
        loaded.update_board(name="Snacks", cover_image=cover, cols=5)
        assert loaded.board.name == "Snacks"
        assert loaded.board.cover_image == cover
        assert loaded.board.grid == Grid(3, 5)

    def test_update_board_blank_name_rejected(self, loaded):
        before = snapshot(loaded)
        with pytest.raises(InvalidBoardError):
            loaded.update_board(name=" ")
        assert snapshot(loaded) == before

    def test_validation_report(self, loaded):
        loaded.add_page()
        report = loaded.validation()
        assert report.is_valid
        assert any("has no buttons" in w for w in report.warnings)


class TestMergeGeneratedPages:
    def test_first_merged_page_becomes_current(self, loaded):
        pages = [
            {"id": "gen_a", "name": "Fruit", "buttons": [{"id": "g1", "row": 0, "col": 0, "label": "Apple"}]},
            {"id": "gen_b", "name": "Veg", "buttons": []},
        ]
        added = loaded.merge_generated_pages(pages)
        assert [p.id for p in added] == ["gen_a", "gen_b"]
        assert loaded.current_page_id == "gen_a"
        assert loaded.is_dirty

    def test_empty_list_is_noop(self, loaded):
        assert loaded.merge_generated_pages([]) == []
        assert not loaded.is_dirty

    def test_full_generated_page_rejected(self, loaded):
        buttons = [{"id": f"g{i}", "row": 0, "col": 0, "label": "X"} for i in range(10)]
        before = snapshot(loaded)
        with pytest.raises(NoSpaceError):
            loaded.merge_generated_pages([{"id": "gen", "name": "Full", "buttons": buttons}])
        assert snapshot(loaded) == before


class TestApplyBoardUpdate:
    def test_applies_as_one_edit(self, nav):
        update = {
            "newPages": [{"id": "gen_food", "name": "Food"}],
            "newButtons": [{"label": "Food", "pageId": "page_a", "linkPageId": "gen_food"}],
            "deletedButtonIds": ["btn_c_hi"],
        }
        board = nav.apply_board_update(update)
        assert board is nav.board
        assert nav.board.find_page("gen_food") is not None
        assert nav.board.find_button("btn_c_hi") is None
        assert nav.current_page_id == "page_a"
        assert nav.is_dirty

    def test_deleted_current_page_falls_back_home(self, nav):
        nav.set_current_page("page_b")
        nav.select_button("btn_to_c")
        nav.apply_board_update({"deletedPageIds": ["page_b"]})
        assert nav.current_page_id == "page_a"
        assert nav.selected_button_id is None

    def test_deleted_selection_cleared(self, loaded):
        loaded.select_button("btn_hello")
        loaded.apply_board_update({"deletedButtonIds": ["btn_hello"]})
        assert loaded.selected_button_id is None

    def test_preview_history_drops_deleted_pages(self, nav):
        nav.set_edit_mode(False)
        nav.activate("btn_to_b")
        nav.activate("btn_to_c")
        nav.apply_board_update({"deletedPageIds": ["page_b"]})
        assert nav.navigation_history == ["page_a", "page_c"]

    def test_rejected_update_leaves_state(self, loaded):
        fill_page(loaded.current_page, loaded.board.grid, skip={(0, 0)})
        before = snapshot(loaded)
        with pytest.raises(NoSpaceError):
            loaded.apply_board_update({"newButtons": [{"label": "More", "pageId": "page_a"}]})
        with pytest.raises(LastPageError):
            loaded.apply_board_update({"deletedPageIds": ["page_a"]})
        with pytest.raises(InvalidBoardError):
            loaded.apply_board_update({"newButtons": "not a list"})
        assert snapshot(loaded) == before


# ============================================================================
# Invariants across edit sequences
# ============================================================================


def assert_consistent(session):
    report = validate_board(session.board)
    assert report.is_valid, report.errors
    assert session.board.find_page(session.current_page_id) is not None
    if session.selected_button_id is not None:
        assert session.board.find_button(session.selected_button_id) is not None


OPERATIONS = ["add", "move", "duplicate", "delete", "video", "page", "drop_page", "goto", "resize", "update"]


class TestInvariantPreservation:
    def test_mixed_sequence(self, nav):
        steps = [
            lambda s: s.add_button(1, 1, "Yes"),
            lambda s: s.add_button(1, 1, "Clash"),
            lambda s: s.update_button("btn_to_b", row=2, col=2),
            lambda s: s.update_button("btn_to_b", row=5, col=0),
            lambda s: s.duplicate_button("btn_to_b"),
            lambda s: s.add_video_player(0, 0, "abc", row_span=1, col_span=2),
            lambda s: s.add_video_player(1, 0, "abc", row_span=2, col_span=1),
            lambda s: s.update_button_action("btn_to_b", "type", "youtube"),
            lambda s: s.update_button_action("btn_to_b", "videoId", "xyz"),
            lambda s: s.resize_grid(2, 2),
            lambda s: s.resize_grid(0, 2),
            lambda s: s.merge_generated_pages([{"id": "gen", "name": "Gen", "buttons": []}]),
            lambda s: s.apply_board_update({
                "newButtons": [{"label": "Go", "pageId": "page_a", "linkPageId": "gen", "row": 1, "col": 1}],
                "editedButtons": [{"id": "btn_c_hi", "pageId": "gen"}],
            }),
            lambda s: s.apply_board_update({"deletedPageIds": ["page_a", "page_b", "page_c", "gen"]}),
            lambda s: s.delete_page("page_b"),
            lambda s: s.add_page(),
            lambda s: s.update_board(name="Renamed", rows=4, cols=4),
            lambda s: s.delete_button("btn_c_hi"),
        ]
        for step in steps:
            try:
                step(nav)
            except BoardError:
                pass
            assert_consistent(nav)

    @pytest.mark.parametrize("seed", [1, 7, 42, 2024])
    def test_random_sequence(self, nav, seed):
        rng = random.Random(seed)

        def any_button():
            buttons = nav.current_page.buttons
            return rng.choice(buttons).id if buttons else None

        def cell():
            grid = nav.board.grid
            return rng.randint(-1, grid.rows), rng.randint(-1, grid.cols)

        for _ in range(60):
            op = rng.choice(OPERATIONS)
            try:
                if op == "add":
                    nav.add_button(*cell(), "R")
                elif op == "move" and any_button():
                    row, col = cell()
                    nav.update_button(any_button(), row=row, col=col)
                elif op == "duplicate" and any_button():
                    nav.duplicate_button(any_button())
                elif op == "delete" and any_button():
                    nav.delete_button(any_button())
                elif op == "video":
                    nav.add_video_player(*cell(), "abc", row_span=rng.randint(1, 2), col_span=rng.randint(1, 2))
                elif op == "page":
                    nav.add_page()
                elif op == "drop_page":
                    nav.delete_page(nav.current_page_id)
                elif op == "goto":
                    nav.set_current_page(rng.choice(nav.board.pages).id)
                elif op == "resize":
                    nav.resize_grid(rng.randint(0, 5), rng.randint(1, 5))
                elif op == "update":
                    row, col = cell()
                    edits = [{"id": b, "row": row, "col": col} for b in [any_button()] if b]
                    row, col = cell()
                    nav.apply_board_update({
                        "newButtons": [{"label": "U", "pageId": nav.current_page_id, "row": row, "col": col}],
                        "editedButtons": edits,
                    })
            except BoardError:
                pass
            assert_consistent(nav)
