import csv
from duplicheck.duplicates import DuplicateFinder
from duplicheck.reporting import ReportGenerator, format_record, print_records
from duplicheck import config

def test_print_records_numbers_lines(capsys, make_record):
    recs = [make_record(name="a.txt", directory="/x"), make_record(name="b.txt", directory="/y")]
    assert print_records(recs) == 2

    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2
    assert out[0].startswith(f"{config.PREFIX_COLOR} 01 {config.COLOR_RESET}")
    assert out[1].endswith(format_record(recs[1]))
    assert format_record(recs[0]) == f'"a.txt" -HASH {"f" * 64} -PATH /x'

def test_export_duplicates_csv(tmp_path, db_ops, make_record):
    db_ops.save_batch([
        make_record(name="a.txt", directory="/x", fingerprint="1" * 64, size_bytes=40),
        make_record(name="b.txt", directory="/y", fingerprint="1" * 64, size_bytes=40),
        make_record(name="c.txt", directory="/z", fingerprint="2" * 64, size_bytes=40),
    ])

    output_csv = tmp_path / "dups.csv"
    rows = ReportGenerator(DuplicateFinder(db_ops)).export_duplicates_csv(output_csv)
    assert rows == 2

    with open(output_csv, "r", encoding="utf-8") as f:
        data = list(csv.DictReader(f))

    assert [row["Name"] for row in data] == ["a.txt", "b.txt"]
    assert all(row["Copies"] == "2" for row in data)
    assert all(row["Reclaimable (bytes)"] == "40" for row in data)

def test_summary_lines(db_ops, make_record):
    db_ops.save_batch([
        make_record(name="a.txt", directory="/x", size_bytes=1000),
        make_record(name="b.txt", directory="/y", size_bytes=1000),
    ])
    lines = ReportGenerator(DuplicateFinder(db_ops)).summary_lines()
    assert lines[0].endswith("1")
    assert lines[1].endswith("2")
    assert "1,000 bytes" in lines[2]

def test_summary_lines_closes_its_read_transaction(db_ops, make_record):
    db_ops.save_batch([make_record(name="a.txt", directory="/x")])
    ReportGenerator(DuplicateFinder(db_ops)).summary_lines()

    assert not db_ops.conn.in_transaction
    assert db_ops.save_batch([make_record(name="b.txt", directory="/y")]) == 1
