from dogplaces.slugs import assign_slugs, slugify


def test_slugify_normalises_names():
    assert slugify("Paws & Co. Pet Supplies") == "paws-and-co-pet-supplies"
    assert slugify("  Café Rendezvous!! ") == "caf-rendezvous"
    assert slugify("---") == ""


def test_assign_slugs_numbers_repeats_in_order():
    rows = [
        {"id": "1", "name": "Dog Run"},
        {"id": "2", "name": "Dog  Run"},
        {"id": "3", "name": "Bark Cafe"},
        {"id": "4", "name": "dog run"},
        {"id": "5", "name": "!!!"},
    ]
    out = assign_slugs(rows)
    assert [r["slug"] for r in out] == ["dog-run", "dog-run-2", "bark-cafe", "dog-run-3", "place"]
    assert "slug" not in rows[0]


def test_assign_slugs_stays_unique_when_a_name_looks_numbered():
    rows = [{"name": "Cafe 2"}, {"name": "Cafe"}, {"name": "Cafe"}]
    slugs = [r["slug"] for r in assign_slugs(rows)]
    assert slugs == ["cafe-2", "cafe", "cafe-3"]
    assert len(set(slugs)) == len(slugs)
