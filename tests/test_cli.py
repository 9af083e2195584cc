import json

import pytest
import yaml

from jobgate.cli import main


@pytest.fixture
def workspace(tmp_path, decisions_file):
    profile = tmp_path / "profile.yaml"
    profile.write_text(yaml.safe_dump({
        "skills": [
            {"name": n, "proficiency": 4}
            for n in ("C#", "ASP.NET", "Azure", "SQL", "Docker", "Kubernetes", "Terraform")
        ],
        "preferences": {"min_salary": 70_000, "target_salary": 90_000},
    }), encoding="utf-8")

    postings = tmp_path / "postings.json"
    postings.write_text(json.dumps([
        {
            "id": "net-1", "title": "Senior .NET Engineer", "company": "Contoso",
            "required_skills": ["C#", "ASP.NET", "Azure", "SQL"],
            "preferred_skills": ["Docker", "Kubernetes"],
            "salary_min": 80_000, "salary_max": 100_000,
            "seniority_level": "senior", "remote_policy": "fully_remote",
            "engagement_type": "contract_b2b",
        },
        {
            "id": "perm-1", "title": "Staff Engineer", "company": "Globex",
            "engagement_type": "employment", "remote_policy": "fully_remote",
        },
    ]), encoding="utf-8")
    return {"profile": str(profile), "postings": str(postings)}


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_match_prints_ranked_scores(workspace, capsys):
    assert main(["match", "--postings", workspace["postings"], "--profile", workspace["profile"]]) == 0
    out = capsys.readouterr().out
    assert "Senior .NET Engineer" in out
    assert "Staff Engineer" not in out
    assert "Apply Now" in out


def test_match_json(workspace, capsys):
    assert main(["match", "-j", workspace["postings"], "-p", workspace["profile"], "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload[0]["id"] == "net-1"
    assert payload[0]["recommended_action"] == "apply"


def test_assess_reports_failed_rule(workspace, capsys):
    assert main(["assess", "perm-1", "--postings", workspace["postings"]]) == 1
    out = capsys.readouterr().out
    assert "[FAIL] Engagement Type" in out
    assert "[PASS] Remote Policy" in out


def test_assess_unknown_posting(workspace, capsys):
    assert main(["assess", "nope", "--postings", workspace["postings"]]) == 1
    assert "No posting" in capsys.readouterr().err


def test_apply_requires_a_decision(workspace, capsys):
    assert main(["apply", "net-1"]) == 1
    assert "decide" in capsys.readouterr().out


def test_decide_then_gate(workspace, decisions_file, capsys):
    assert main(["decide", "--postings", workspace["postings"], "--profile", workspace["profile"]]) == 0
    assert "APPLY_NOW" in capsys.readouterr().out
    assert decisions_file.exists()

    assert main(["apply", "net-1"]) == 0
    assert "ALLOWED" in capsys.readouterr().out

    assert main(["learn", "net-1"]) == 1
    assert "over-prepare" in capsys.readouterr().out

    assert main(["decisions"]) == 0
    assert "net-1" in capsys.readouterr().out


def test_decide_single_posting_with_report(workspace, capsys):
    args = ["decide", "-j", workspace["postings"], "-p", workspace["profile"], "--posting-id", "net-1", "--report"]
    assert main(args) == 0
    out = capsys.readouterr().out
    assert "Report:" in out
    assert "decisions_" in out


def test_clear(workspace, capsys):
    main(["decide", "--postings", workspace["postings"], "--profile", workspace["profile"]])
    capsys.readouterr()

    assert main(["clear"]) == 0
    assert main(["decisions"]) == 0
    assert "No decisions recorded" in capsys.readouterr().out
    assert main(["apply", "net-1"]) == 1


def test_missing_postings_file(tmp_path, decisions_file, capsys):
    assert main(["assess", "x", "--postings", str(tmp_path / "missing.json")]) == 1
    assert "Error" in capsys.readouterr().err
