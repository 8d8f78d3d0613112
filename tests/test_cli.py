"""CLI commands that need no network."""

from typer.testing import CliRunner

from retailodds.cli.app import app

runner = CliRunner()


def test_classify_shows_rejection_and_result():
    result = runner.invoke(app, ["classify", "Will the Amazon rainforest burn while Target raises prices?"])
    assert result.exit_code == 0
    assert "amazon" in result.output
    assert "rejected by" in result.output
    assert "Result: target" in result.output


def test_classify_unclassified():
    result = runner.invoke(app, ["classify", "Who wins the Super Bowl?"])
    assert result.exit_code == 0
    assert "Result: unclassified" in result.output


def test_unknown_bucket_rejected():
    result = runner.invoke(app, ["markets", "list", "--retailer", "kroger"])
    assert result.exit_code == 2
    assert "Unknown bucket" in result.output
