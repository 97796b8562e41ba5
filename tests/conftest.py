from __future__ import annotations

import os
from typing import Iterator

import pytest

from certbuild import IssuedCertificate, issue


def _discard(issued: IssuedCertificate) -> None:
    for path in issued.paths():
        if os.path.exists(path):
            os.remove(path)


@pytest.fixture
def issue_cert() -> Iterator:
    """Issue certificates for a test and remove their files afterwards."""
    issued: list[IssuedCertificate] = []

    def _issue(host: str) -> IssuedCertificate:
        result = issue(host)
        issued.append(result)
        return result

    yield _issue

    for item in issued:
        _discard(item)


@pytest.fixture
def site(tmp_path):
    """A small directory tree to serve."""
    root = tmp_path / "root"
    root.mkdir()
    (root / "hello.txt").write_text("hello world\n", encoding="utf-8")
    (root / "a b.txt").write_text("spaced\n", encoding="utf-8")
    (root / "<b>.txt").write_text("markup\n", encoding="utf-8")
    (root / "sub").mkdir()
    (root / "sub" / "nested.txt").write_text("nested\n", encoding="utf-8")
    (root / "site").mkdir()
    (root / "site" / "index.html").write_text("<h1>index page</h1>\n", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("outside the root\n", encoding="utf-8")
    return root
