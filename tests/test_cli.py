import json
from pathlib import Path

from click.testing import CliRunner

from btc_rpc_schema.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliCheck:
    def test_check_valid_document(self):
        runner = CliRunner()
        result = runner.invoke(main, ["check", str(FIXTURES / "bitcoin_api.json")])
        assert result.exit_code == 0
        assert "6 methods" in result.output

    def test_check_reports_path(self, tmp_path):
        doc = tmp_path / "bad.json"
        doc.write_text(
            json.dumps(
                {"methods": {"getblock": {"name": "getblock", "arguments": [{"name": "blockhash", "type": "hex"}]}}}
            )
        )
        runner = CliRunner()
        result = runner.invoke(main, ["check", str(doc)])
        assert result.exit_code == 1
        assert "methods.getblock.arguments[0].type" in result.output
        assert "unknown type label 'hex'" in result.output

    def test_check_yaml(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--verbose", "check", str(FIXTURES / "small_api.yaml")])
        assert result.exit_code == 0
        assert "2 methods" in result.output


class TestCliShow:
    def test_show_signature_in_call_order(self):
        runner = CliRunner()
        result = runner.invoke(main, ["show", str(FIXTURES / "bitcoin_api.json"), "getblock"])
        assert result.exit_code == 0
        assert "getblock(blockhash: string, verbosity?: integer)" in result.output
        assert "Result 2 (for verbosity = 1):" in result.output
        assert "nextblockhash: string (optional)" in result.output

    def test_show_missing_method(self):
        runner = CliRunner()
        result = runner.invoke(main, ["show", str(FIXTURES / "bitcoin_api.json"), "gettransaction"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestCliDump:
    def test_dump_to_file(self, tmp_path):
        output = tmp_path / "out" / "api.json"
        runner = CliRunner()
        result = runner.invoke(main, ["dump", str(FIXTURES / "small_api.yaml"), "-o", str(output)])
        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert list(data["methods"]) == ["getblockcount", "getblockheader"]

    def test_dump_yaml_to_stdout(self):
        runner = CliRunner()
        result = runner.invoke(main, ["dump", str(FIXTURES / "bitcoin_api.json"), "--to", "yaml"])
        assert result.exit_code == 0
        assert result.output.startswith("methods:")
