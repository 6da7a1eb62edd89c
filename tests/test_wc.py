import io

from xvtools.wc import Counts, count, main


def test_count():
    data = b"hello world\nfoo\n"
    assert count(io.BytesIO(data)) == Counts(2, 3, len(data))


def test_count_whitespace_runs():
    data = b"  a\t\tb \r\v c"
    c = count(io.BytesIO(data))
    assert c.words == 3
    assert c.lines == 0
    assert c.chars == len(data)


def test_empty():
    assert count(io.BytesIO(b"")) == Counts()


def test_main(tmp_path, capsys):
    f = tmp_path / "x"
    f.write_bytes(b"a b\n")
    assert main([str(f)]) == 0
    assert capsys.readouterr().out == f"1 2 4 {f}\n"
    assert main([str(tmp_path / "none")]) == 1