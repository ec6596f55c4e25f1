"""Tests for the command line interface."""
from __future__ import annotations

import pytest

from zusi_fpn.cli import build_parser, main
from zusi_fpn.infrastructure.config_reader import read_schedule

ZUG = (
    '<Zug nummer="10001" gattung="RB"><Route><RoutePart>'
    '<TrainFileByPath path="route-part-1.trn"/></RoutePart></Route>'
    '<RollingStock path="rolling-stock-a.trn"/></Zug>'
)


def test_parser_schedule_apply_takes_several_files() -> None:
    args = build_parser().parse_args(["schedule", "apply", "-s", "a.xml", "-t", "a.trn", "b.trn"])
    assert args.schedule_command == "apply"
    assert [p.name for p in args.trn_files] == ["a.trn", "b.trn"]


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_generate_fahrplan_success_is_silent(templates, write_config, capsys) -> None:  # type: ignore[no-untyped-def]
    config = write_config(ZUG)
    assert main(["generate-fahrplan", "--config", str(config)]) == 0
    assert templates.path("dev/out/test/RB10001.trn").exists()
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_generate_fahrplan_failure_exits_non_zero(templates, write_config, capsys) -> None:  # type: ignore[no-untyped-def]
    config = write_config(ZUG.replace("route-part-1.trn", "missing.trn"))
    assert main(["generate-fahrplan", "-c", str(config)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: Couldn't generate train '10001'")
    assert "missing.trn" in err


def test_schedule_generate_then_apply(templates, capsys) -> None:  # type: ignore[no-untyped-def]
    schedule = templates.path("dev/schedules/route-1.schedule.xml")
    trn = templates.path("dev/route-part-1.trn")

    assert main(["schedule", "generate", "--trn", str(trn), "--schedule", str(schedule)]) == 0
    assert len(read_schedule(schedule).entries) == 3
    assert main(["schedule", "apply", "-s", str(schedule), "-t", str(trn)]) == 0
    assert capsys.readouterr().err == ""


def test_schedule_apply_reports_file_errors_and_succeeds(templates, capsys) -> None:  # type: ignore[no-untyped-def]
    schedule = templates.path("dev/route-1.schedule.xml")
    main(["schedule", "generate", "-t", str(templates.path("dev/route-part-1.trn")), "-s", str(schedule)])
    missing = templates.path("dev/missing.trn")

    code = main(["schedule", "apply", "-s", str(schedule), "-t", str(missing), str(templates.path("dev/route-part-2.trn"))])

    assert code == 0
    err = capsys.readouterr().err
    assert err.startswith(f"{missing}: ")
    assert len(err.strip().splitlines()) == 1


def test_schedule_apply_unreadable_schedule_fails(templates, capsys) -> None:  # type: ignore[no-untyped-def]
    code = main(["schedule", "apply", "-s", str(templates.path("dev/missing.xml")), "-t", str(templates.path("dev/route-part-1.trn"))])
    assert code == 1
    assert capsys.readouterr().err.startswith("Error: ")


def test_schedule_generate_missing_train_fails(data_dir, capsys) -> None:  # type: ignore[no-untyped-def]
    code = main(["schedule", "generate", "-t", str(data_dir.path("x.trn")), "-s", str(data_dir.path("x.xml"))])
    assert code == 1
    assert "x.trn" in capsys.readouterr().err


def test_schedule_commands_report_unparsable_times(templates, capsys) -> None:  # type: ignore[no-untyped-def]
    schedule = templates.path("dev/route-1.schedule.xml")
    main(["schedule", "generate", "-t", str(templates.path("dev/route-part-1.trn")), "-s", str(schedule)])
    bad = templates.path("dev/route-part-1-ptt.trn")
    bad.write_text(
        bad.read_text(encoding="utf-8").replace('Abf="2024-06-20 08:45:00"', 'Abf="garbage"'),
        encoding="utf-8",
    )
    good = templates.path("dev/route-part-1.trn")

    assert main(["schedule", "apply", "-s", str(schedule), "-t", str(bad), str(good)]) == 0
    err = capsys.readouterr().err
    assert err.startswith(f"{bad}: ")
    assert "garbage" in err
    assert len(err.strip().splitlines()) == 1

    assert main(["schedule", "generate", "-t", str(bad), "-s", str(templates.path("dev/x.xml"))]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert "garbage" in err
