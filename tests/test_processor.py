import json

import pytest

from billsplit import cli
from billsplit.errors import ArgumentError, BillFileError, FormatError
from billsplit.processor import main, parse_args, process_directory, process_file


BILL = {
    "date": "2024-03-21",
    "location": "開心小館",
    "tipPercentage": 10,
    "items": [
        {"name": "A", "price": 100, "isShared": True},
        {"name": "B", "price": 50, "isShared": False, "person": "Alice"},
        {"name": "C", "price": 50, "isShared": False, "person": "Bob"},
    ],
}


def write_bill(path, data=BILL):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


def test_parse_args_both_forms():
    args = parse_args(["--input=in.json", "--output", "out.json"])
    assert str(args.input) == "in.json"
    assert str(args.output) == "out.json"
    assert args.format == "json"


def test_parse_args_text_format():
    assert parse_args(["--input=a", "--output=b", "--format=text"]).format == "text"


def test_parse_args_rejects_unknown_format():
    with pytest.raises(ArgumentError):
        parse_args(["--input=a", "--output=b", "--format=xml"])


def test_parse_args_requires_input_and_output():
    with pytest.raises(ArgumentError):
        parse_args(["--input=a"])


def test_default_format_from_settings(monkeypatch):
    monkeypatch.setenv("BILLSPLIT_FORMAT", "text")
    assert parse_args(["--input=a", "--output=b"]).format == "text"


def test_process_file(tmp_path):
    source = write_bill(tmp_path / "bill.json")
    target = tmp_path / "out" / "result.json"

    result = process_file(source, target, "json")

    assert result.total_amount == 220
    assert json.loads(target.read_text(encoding="utf-8")) == {
        "date": "2024年3月21日",
        "location": "開心小館",
        "subTotal": 200,
        "tip": 20,
        "totalAmount": 220,
        "items": [{"name": "Alice", "amount": 110}, {"name": "Bob", "amount": 110}],
    }


def test_process_file_bad_date(tmp_path):
    source = write_bill(tmp_path / "bill.json", dict(BILL, date="2024/03/21"))
    with pytest.raises(FormatError):
        process_file(source, tmp_path / "result.json", "json")


@pytest.mark.asyncio
async def test_main_single_file(tmp_path):
    source = write_bill(tmp_path / "bill.json")
    target = tmp_path / "result.txt"

    code = await main([f"--input={source}", f"--output={target}", "--format=text"])

    assert code == 0
    assert "Alice 應付：$110" in target.read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_main_missing_input(tmp_path):
    with pytest.raises(BillFileError, match="input file not found"):
        await main([f"--input={tmp_path / 'nope.json'}", f"--output={tmp_path / 'out.json'}"])


@pytest.mark.asyncio
async def test_process_directory_skips_non_json_and_isolates_failures(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    write_bill(input_dir / "bill-1.json")
    write_bill(input_dir / "bill-2.json", dict(BILL, location="美味餐廳"))
    write_bill(input_dir / "broken.json", dict(BILL, date="yesterday"))
    (input_dir / "notes.txt").write_text("not a bill", encoding="utf-8")

    result = await process_directory(input_dir, output_dir, "json")

    assert [path.name for path in result.processed] == ["bill-1.json", "bill-2.json"]
    assert [path.name for path in result.failed] == ["broken.json"]
    assert not result.ok
    assert sorted(path.name for path in output_dir.iterdir()) == ["bill-1.json", "bill-2.json"]
    second = json.loads((output_dir / "bill-2.json").read_text(encoding="utf-8"))
    assert second["location"] == "美味餐廳"


@pytest.mark.asyncio
async def test_main_directory_mode(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    write_bill(input_dir / "bill-1.json")
    write_bill(input_dir / "bill-2.json")

    code = await main([f"--input={input_dir}", f"--output={output_dir}", "--format=text"])

    assert code == 0
    assert sorted(path.name for path in output_dir.iterdir()) == ["bill-1.txt", "bill-2.txt"]


@pytest.mark.asyncio
async def test_main_directory_mode_reports_failures(tmp_path):
    input_dir = tmp_path / "input"
    write_bill(input_dir / "bill-1.json")
    (input_dir / "empty.json").write_text("", encoding="utf-8")

    code = await main([f"--input={input_dir}", f"--output={tmp_path / 'output'}"])

    assert code == 1
    assert (tmp_path / "output" / "bill-1.json").exists()


def test_cli_exit_codes(tmp_path, monkeypatch, capsys):
    source = write_bill(tmp_path / "bill.json")

    monkeypatch.setattr("sys.argv", ["billsplit", f"--input={source}", f"--output={tmp_path / 'out.json'}"])
    with pytest.raises(SystemExit) as exc_info:
        cli.run()
    assert exc_info.value.code == 0

    monkeypatch.setattr("sys.argv", ["billsplit", f"--input={tmp_path / 'missing.json'}", "--output=x.json"])
    with pytest.raises(SystemExit) as exc_info:
        cli.run()
    assert exc_info.value.code == 1
    assert "input file not found" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_process_directory_survives_undecodable_file(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    write_bill(input_dir / "a.json")
    (input_dir / "b.json").write_bytes(b'{"date": "\xff\xfe"}')
    write_bill(input_dir / "c.json")

    result = await process_directory(input_dir, output_dir, "json")

    assert [path.name for path in result.processed] == ["a.json", "c.json"]
    assert "invalid JSON file" in result.failed[input_dir / "b.json"]
    assert sorted(path.name for path in output_dir.iterdir()) == ["a.json", "c.json"]


@pytest.mark.asyncio
async def test_process_directory_records_unwritable_output(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    write_bill(input_dir / "a.json")
    write_bill(input_dir / "b.json")
    # на месте b.json в выходном каталоге лежит каталог, файл туда не записать
    (output_dir / "b.json").mkdir(parents=True)

    result = await process_directory(input_dir, output_dir, "json")

    assert [path.name for path in result.processed] == ["a.json"]
    assert "cannot write output file" in result.failed[input_dir / "b.json"]


@pytest.mark.asyncio
async def test_main_single_file_not_utf8(tmp_path):
    source = tmp_path / "bill.json"
    source.write_bytes(b'{"date": "\xff\xfe"}')
    with pytest.raises(BillFileError, match="invalid JSON file"):
        await main([f"--input={source}", f"--output={tmp_path / 'out.json'}"])


def test_cli_reports_unwritable_output(tmp_path, monkeypatch, capsys):
    source = write_bill(tmp_path / "bill.json")
    target = tmp_path / "taken"
    target.mkdir()

    monkeypatch.setattr("sys.argv", ["billsplit", f"--input={source}", f"--output={target}"])
    with pytest.raises(SystemExit) as exc_info:
        cli.run()
    assert exc_info.value.code == 1
    assert "cannot write output file" in capsys.readouterr().err
