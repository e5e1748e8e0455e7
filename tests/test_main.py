import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from main import main


class TestMain:
    def test_snapshot_on_stdout_errors_on_stderr(self, tmp_path, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
            "refund, 2, 6, 1.0",
        ]))

        assert main(["main.py", str(csv_file)]) == 0

        captured = capsys.readouterr()
        assert captured.out.splitlines() == [
            "client,available,held,total,locked",
            "1,1.5,0,1.5,false",
            "2,2,0,2,false",
        ]
        assert "line 6: withdrawal client=2 tx=5: insufficient funds" in captured.err
        assert "line 7: parse error: unknown transaction type 'refund'" in captured.err

    def test_usage(self, capsys):
        assert main(["main.py"]) == 1
        assert "Usage" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["main.py", str(tmp_path / "missing.csv")]) == 1
        assert "Failed to open file" in capsys.readouterr().err

    def test_fatal_error(self, tmp_path, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("")

        assert main(["main.py", str(csv_file)]) == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("fatal:")
