"""
test_ticket_model.py - Tests for wire schema parsing and Ticket construction
"""

import json

import pytest
from pydantic import ValidationError

from loto_client.scanner.errors import IncompleteResult, ScanRejected
from loto_client.schemas.scan import SUCCESS_STATUSES, ScanResult
from loto_client.ticket.model import Ticket

from conftest import SAMPLE_BLOCK, make_result


def test_parses_full_service_response():
    body = json.dumps({
        "scan_id": "a1b2",
        "lottery_type": "LOTO",
        "blocks": [{"row1": [5, 13, 27, 44, 90], "row2": [8, 19, 36, 52, 71], "row3": [21, 33, 48, 65, 87]}],
        "all_numbers": [5, 8, 13],
        "ticket_id": "T-042",
        "confidence": 0.91,
        "status": "confirmed",
        "notes": "clear photo",
    })
    result = ScanResult.model_validate_json(body)

    assert result.blocks[0].row1 == [5, 13, 27, 44, 90]
    assert result.has_blocks
    assert not result.is_rejected
    assert result.ticket_id == "T-042"


def test_optional_fields_may_be_missing():
    result = ScanResult.model_validate_json('{"status": "ok"}')

    assert result.blocks is None
    assert result.all_numbers == []
    assert result.scan_id is None
    assert not result.has_blocks


def test_status_is_required():
    with pytest.raises(ValidationError):
        ScanResult.model_validate_json('{"lottery_type": "LOTO"}')


def test_ticket_from_result_keeps_metadata():
    ticket = Ticket.from_result(make_result(ticket_id="T-7", scan_id="s-1", notes="ok"))

    assert ticket.blocks == (SAMPLE_BLOCK,)
    assert ticket.ticket_id == "T-7"
    assert ticket.scan_id == "s-1"
    assert ticket.lottery_type == "LOTO"
    assert 90 in ticket.numbers
    assert 90 in ticket.all_numbers


def test_rejected_status_wins_over_blocks():
    with pytest.raises(ScanRejected):
        Ticket.from_result(make_result(status="rejected"))


@pytest.mark.parametrize("blocks", [None, []])
def test_no_blocks_is_incomplete(blocks):
    result = ScanResult(status="ok", blocks=blocks)
    with pytest.raises(IncompleteResult):
        Ticket.from_result(result)


@pytest.mark.parametrize("status", SUCCESS_STATUSES)
def test_success_statuses_build_ticket(status):
    ticket = Ticket.from_result(make_result(status=status))
    assert ticket.status == status
    assert len(ticket.blocks) == 1


def test_unknown_status_is_treated_as_success():
    ticket = Ticket.from_result(make_result(status="pending_review"))
    assert ticket.status == "pending_review"


def test_ticket_grid_is_recomputed_from_blocks():
    ticket = Ticket.from_result(make_result())
    grid = ticket.grid()

    assert len(grid) == 1
    assert grid[0][0] == [5, 13, 27, None, 44, None, None, None, 90]
    assert grid == ticket.grid()
    assert grid is not ticket.grid()
