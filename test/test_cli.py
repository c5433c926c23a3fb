import pytest

from fhe_aes import cli
from fhe_aes.reference import keystream

KEY = "2b7e151628aed2a6abf7158809cf4f3c"
IV = "f0f1f2f3f4f5f6f7f8f9fafbfcfdfeff"


@pytest.mark.parametrize("mode", ["increment", "xor"])
def test_cli_simulated_run(capsys, mode):
    rc = cli.main(["-n", "3", "-i", IV, "-k", KEY, "--mode", mode, "--workers", "2"])
    out = capsys.readouterr().out
    assert rc == 0
    expected = keystream(bytes.fromhex(KEY), bytes.fromhex(IV), 3, mode)
    for block in expected:
        assert block.hex() in out
    assert "Operations:" in out
    assert "All blocks match the reference" in out


@pytest.mark.parametrize("argv", [
    ["-n", "1", "-i", IV[:-2], "-k", KEY],
    ["-n", "1", "-i", IV, "-k", "zz" * 16],
    ["-n", "0", "-i", IV, "-k", KEY],
    ["-n", "1", "-i", IV, "-k", KEY, "--backend", "gpu"],
    ["-n", "1", "-k", KEY],
])
def test_cli_argument_errors(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    assert exc.value.code == 2


def test_cli_reports_mismatch(capsys, monkeypatch):
    def wrong(key, iv, count, mode):
        return [bytes(16)] * count

    monkeypatch.setattr(cli, "keystream", wrong)
    assert cli.main(["-n", "1", "-i", IV, "-k", KEY]) == 1
    assert "Verification FAILED" in capsys.readouterr().out
