from repocover.models import Document, Identifier, Licence, Person


def test_person_full_name() -> None:
    assert Person(first_name="Ada", last_name="Lovelace").full_name == "Ada Lovelace"


def test_main_licence_is_first_licence() -> None:
    document = Document(id=1, licences=[Licence(name="CC BY 4.0"), Licence(name="CC0")])
    assert document.main_licence is not None
    assert document.main_licence.name == "CC BY 4.0"
    assert Document(id=2).main_licence is None


def test_identifiers_of_filters_by_type() -> None:
    document = Document(
        id=1,
        identifiers=[
            Identifier(type="isbn", value="978-3-16-148410-0"),
            Identifier(type="doi", value="10.1/a"),
            Identifier(type="doi", value="10.1/b"),
        ],
    )
    assert document.identifiers_of("doi") == ["10.1/a", "10.1/b"]
    assert document.identifiers_of("issn") == []

