from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from parrita.models import DiscoveryCall
from parrita.services.csv_parser import parse_csv
from parrita.services.importer import DiscoveryCallImporter


HEADER = ["infos_client", "phase_1", "phase_2", "phase_3", "phase_4"]


def _row(company, sector="retail", phases=("intro", "explo", "affinage", "next")):
    return [f"Entreprise: {company} | Secteur: {sector} | Besoin: factures"] + list(phases)


def test_imports_rows_and_counts_short_ones(db):
    rows = [
        HEADER,
        _row("Acme"),
        ["Entreprise: Court", "seulement deux"],
        _row("Globex", phases=("intro", "", "", "")),
    ]

    summary = DiscoveryCallImporter(db).import_rows(rows)

    assert summary.imported == 2
    assert summary.errors == 1
    assert summary.imported + summary.errors == len(rows) - 1

    calls = {c.entreprise: c for c in db.scalars(select(DiscoveryCall))}
    assert set(calls) == {"Acme", "Globex"}

    acme = calls["Acme"]
    assert acme.secteur == "retail"
    assert acme.besoin == "factures"
    assert acme.phase_4_next_steps == "next"
    assert acme.raw_data == {"infos_client": rows[1][0], "line_number": 1}
    assert acme.import_batch_id == summary.import_batch_id

    globex = calls["Globex"]
    assert globex.phase_1_introduction == "intro"
    assert globex.phase_2_exploration is None
    assert globex.raw_data["line_number"] == 3


def test_extra_columns_are_ignored(db):
    summary = DiscoveryCallImporter(db).import_rows([HEADER, _row("Acme") + ["extra"]])

    assert summary.imported == 1
    assert summary.errors == 0


def test_header_only_imports_nothing(db):
    summary = DiscoveryCallImporter(db).import_rows([HEADER])

    assert (summary.imported, summary.errors) == (0, 0)


def test_persistence_failure_is_counted_and_batch_continues(db, monkeypatch):
    real_commit = db.commit
    calls = {"n": 0}

    def flaky_commit():
        calls["n"] += 1
        if calls["n"] == 2:
            raise SQLAlchemyError("disk full")
        real_commit()

    monkeypatch.setattr(db, "commit", flaky_commit)

    rows = [HEADER, _row("A"), _row("B"), _row("C")]
    summary = DiscoveryCallImporter(db).import_rows(rows)

    assert summary.imported == 2
    assert summary.errors == 1

    names = sorted(c.entreprise for c in db.scalars(select(DiscoveryCall)))
    assert names == ["A", "C"]


def test_parsed_csv_round_trip(db):
    csv_text = (
        "infos_client,p1,p2,p3,p4\n"
        '"Entreprise: Acme | Secteur: retail | Besoin: stock","Bonjour,\ncomment ça va ?",b,c,d\n'
        ",,,,\n"
    )

    summary = DiscoveryCallImporter(db).import_rows(parse_csv(csv_text))

    assert summary.imported == 1
    call = db.scalars(select(DiscoveryCall)).one()
    assert call.phase_1_introduction == "Bonjour,\ncomment ça va ?"


def test_batches_are_listed_and_deleted(db):
    importer = DiscoveryCallImporter(db)

    first = importer.import_rows([HEADER, _row("A"), _row("B")])
    second = importer.import_rows([HEADER, _row("C")])

    batches = {b.import_batch_id: b.count for b in importer.list_batches()}
    assert batches == {first.import_batch_id: 2, second.import_batch_id: 1}

    assert importer.delete_batch(first.import_batch_id) == 2

    remaining = importer.list_batches()
    assert [b.import_batch_id for b in remaining] == [second.import_batch_id]
    assert importer.delete_batch("missing") == 0
