"""End-to-end tests for the labmath command line."""

import logging
import os

import pytest

from labmath.cli import main


def test_mw(capsys):
    assert main(["mw", "H2O"]) == 0
    out = capsys.readouterr().out
    assert "Molecular weight: 18.015 g/mol" in out
    assert "Hill: H2O" in out


def test_mw_invalid_formula_exits_2(caplog):
    with caplog.at_level(logging.ERROR):
        assert main(["mw", "Xx2"]) == 2
    assert "Unknown element: Xx" in caplog.text


def test_dilute(capsys):
    assert main(["dilute", "0.5", "M", "50", "mM", "1", "L"]) == 0
    out = capsys.readouterr().out
    assert "Stock (0.5 M): 100 mL" in out
    assert "Solvent: 900 mL" in out
    assert "Dilution factor: 10X" in out


def test_dilute_impossible(caplog):
    assert main(["dilute", "10", "mM", "1", "M", "1", "L"]) == 2
    assert "not stronger" in caplog.text


def test_dilute_non_numeric(caplog):
    assert main(["dilute", "ten", "mM", "1", "mM", "1", "L"]) == 2
    assert "must be a number" in caplog.text


def test_buffer_titration(capsys):
    assert main(["buffer", "tris", "8.06", "100", "mM", "1", "L", "--adjuster", "hcl_1m"]) == 0
    out = capsys.readouterr().out
    assert "Tris Base" in out
    assert "12.114 g" in out
    assert "50 mL" in out


def test_buffer_default_adjuster(capsys):
    assert main(["buffer", "hepes", "7.5", "50", "mM", "500", "mL"]) == 0
    assert "NaOH 1M" in capsys.readouterr().out


def test_buffer_incompatible_adjuster(caplog):
    assert main(["buffer", "hepes", "7.5", "50", "mM", "1", "L", "--adjuster", "hcl_1m"]) == 2
    assert "base form of HEPES" in caplog.text


def test_buffer_plot(tmp_path):
    plot_dir = tmp_path / "plots"
    assert (
        main(
            [
                "buffer",
                "phosphate",
                "7.4",
                "0.1",
                "M",
                "1",
                "L",
                "--method",
                "salt_mix",
                "--plot",
                str(plot_dir),
            ]
        )
        == 0
    )
    assert os.path.exists(plot_dir / "phosphate_speciation.png")


def test_solve_mass(capsys):
    argv = [
        "solve",
        "mass",
        "--mw",
        "58.44",
        "--volume",
        "500",
        "mL",
        "--concentration",
        "150",
        "mM",
    ]
    assert main(argv) == 0
    assert "mass = 4.383 g" in capsys.readouterr().out


def test_solve_incomplete(caplog):
    assert main(["solve", "volume", "--mw", "58.44"]) == 2
    assert "Not enough inputs" in caplog.text


def test_recipe_with_csv(tmp_path, capsys):
    assert main(["recipe", "pbs-10x", "--csv", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "PBS (10X)" in out
    assert "80.063 g" in out
    assert os.path.exists(tmp_path / "pbs-10x.csv")


def test_unknown_recipe_is_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        main(["recipe", "lb-broth"])
    assert exc_info.value.code == 2


def test_mw_resolve_parses_formula_locally(capsys):
    assert main(["mw", "NaCl", "--resolve"]) == 0
    assert "Molecular weight: 58.440 g/mol" in capsys.readouterr().out


def test_mw_resolve_unreachable_service(caplog):
    assert main(["mw", "sodium chloride", "--resolve"]) == 2
    assert "Could not resolve 'sodium chloride'" in caplog.text


def test_solve_mw_in_wrong_unit_exits_2(caplog):
    argv = [
        "solve",
        "mw",
        "--mass",
        "1",
        "g",
        "--volume",
        "1",
        "L",
        "--concentration",
        "1",
        "M",
        "--unit",
        "mg",
    ]
    assert main(argv) == 2
    assert "molecular weight unit" in caplog.text
