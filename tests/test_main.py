import json

from kinship.main import main


def write_dataset(path):
    path.write_text(
        json.dumps(
            {
                "people": [
                    {"id": 1, "firstName": "A", "gender": "male", "dateOfBirth": 1000, "houseId": 1},
                    {"id": 2, "firstName": "B", "gender": "female", "dateOfBirth": 1002},
                    {"id": 3, "firstName": "C", "gender": "female", "dateOfBirth": 1020, "houseId": 1},
                    {"id": 4, "firstName": "D", "gender": "male", "dateOfBirth": 1022, "legitimacyStatus": "bastard"},
                ],
                "houses": [{"id": 1, "name": "First"}],
                "relationships": [
                    {"id": 1, "relationshipType": "spouse", "person1Id": 1, "person2Id": 2},
                    {"id": 2, "relationshipType": "parent", "person1Id": 1, "person2Id": 3},
                    {"id": 3, "relationshipType": "parent", "person1Id": 2, "person2Id": 3},
                    {"id": 4, "relationshipType": "parent", "person1Id": 1, "person2Id": 4},
                ],
            }
        ),
        encoding="utf-8",
    )


def test_main_pipeline(tmp_path, capsys):
    dataset = tmp_path / "dataset.json"
    write_dataset(dataset)
    report = tmp_path / "report.json"
    output = tmp_path / "tree.dot"

    main([str(dataset), "--person", "3", "--report", str(report), "--output", str(output)])

    out = capsys.readouterr().out
    assert "Found 4 people, 4 relationships and 1 houses" in out
    assert "No integrity issues found" in out
    assert "D: Half-Brother" in out
    assert "Done!" in out
    assert json.loads(report.read_text(encoding="utf-8"))["healthy"] is True
    assert output.exists()


def test_main_house_scope(tmp_path, capsys):
    dataset = tmp_path / "dataset.json"
    write_dataset(dataset)

    main([str(dataset), "--house", "1", "--no-plot"])

    out = capsys.readouterr().out
    assert "Scope: house 1 (4 people)" in out
    assert "4 cards in 1 fragments" in out
