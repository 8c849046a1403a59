from services.document_parser import (
    detect_relationship,
    parse_date,
    parse_document_text,
    parse_time,
    split_blocks,
)

DOC = """Name: Rose Smith - mother
Born March 4, 1962 at 7:45 pm

David
My father, born 23 November 1960

Sister: Ana
04/15/1995

Just a note about the family reunion.
"""


def test_parse_document_text_extracts_people():
    people = parse_document_text(DOC)
    assert people == [
        {"name": "Rose Smith", "birthDate": "1962-03-04", "birthTime": "19:45", "relationship": "Mother"},
        {"name": "David", "birthDate": "1960-11-23", "birthTime": "", "relationship": "Father"},
        {"name": "Ana", "birthDate": "1995-04-15", "birthTime": "", "relationship": "Sibling"},
    ]


def test_numbered_entries_are_separate_blocks():
    text = "1. Grandpa Joe 1931-2-7\n2. Kim, my daughter, 2012-11-30 08:15"
    blocks = split_blocks(text)
    assert len(blocks) == 2
    people = parse_document_text(text)
    assert [p["birthDate"] for p in people] == ["1931-02-07", "2012-11-30"]
    assert [p["relationship"] for p in people] == ["Grandparent", "Child"]
    assert people[1]["birthTime"] == "08:15"


def test_date_formats_and_precedence():
    assert parse_date("born july 4, 1976") == "1976-07-04"
    assert parse_date("4 July 1976") == "1976-07-04"
    assert parse_date("1976-7-4") == "1976-07-04"
    assert parse_date("7/4/1976") == "1976-07-04"
    assert parse_date("no date here") is None


def test_time_am_pm():
    assert parse_time("at 12:30 am") == "00:30"
    assert parse_time("at 12:30 pm") == "12:30"
    assert parse_time("at 3:05PM") == "15:05"
    assert parse_time("at 14:20") == "14:20"
    assert parse_time("sometime in the morning") == ""


def test_relationship_keywords():
    assert detect_relationship("my grandmother") == "Grandparent"
    assert detect_relationship("great-grandfather Abe") == "Grandparent"
    assert detect_relationship("this person") == "Family Member"
    assert detect_relationship("my two sons") == "Child"
    assert detect_relationship("Mom") == "Mother"
    assert detect_relationship("my stepmother Ana") == "Mother"
    assert detect_relationship("stepdad Carl") == "Father"
    assert detect_relationship("half-sister Jo") == "Sibling"
    assert detect_relationship("mom's birthday") == "Mother"
    assert detect_relationship("our grandson Leo") == "Child"
    assert detect_relationship("the grandchildren") == "Child"
