import csv
import io

from testosim.cli import main


def test_compounds_listing():
    out = io.StringIO()
    assert main(["compounds"], out=out) == 0
    text = out.getvalue()
    assert "testosterone-enanthate" in text and "sustanon-250" in text


def test_simulate_writes_layers_csv(tmp_path):
    path = tmp_path / "levels.csv"
    out = io.StringIO()
    code = main([
        "simulate", "--compound", "testosterone-cypionate", "--dose", "100", "--every", "7",
        "--weeks", "4", "--step", "1", "--start", "2024-01-01", "--csv", str(path),
    ], out=out)
    assert code == 0
    assert "peak" in out.getvalue()

    with open(path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["timestamp", "layer", "value"]
    layers = {row[1] for row in rows[1:]}
    assert layers == {"Testosterone Cypionate", "Total Concentration", "Anabolic Effect", "Androgenic Effect"}
    # 29 daily points per layer
    assert len(rows) - 1 == 4 * 29
    assert rows[1][0] == "2024-01-01T00:00:00"


def test_simulate_blend_single_dose():
    out = io.StringIO()
    code = main(["simulate", "--blend", "sustanon-250", "--dose", "250", "--weeks", "2",
                 "--start", "2024-01-01", "--one-compartment"], out=out)
    assert code == 0


def test_unknown_compound_exits_with_status_2(capsys):
    code = main(["simulate", "--compound", "nope", "--dose", "100", "--every", "7"], out=io.StringIO())
    assert code == 2
    assert "nope" in capsys.readouterr().err
