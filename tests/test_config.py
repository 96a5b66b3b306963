from __future__ import annotations

import os

import pytest

from traffic_mapreduce.config import THREADS_ENV_VAR, ProjectConfig, resolve_n_threads


def test_resolve_n_threads():
    assert resolve_n_threads(3) == 3
    assert resolve_n_threads(None) == (os.cpu_count() or 1)
    assert resolve_n_threads(0) == (os.cpu_count() or 1)
    with pytest.raises(ValueError):
        resolve_n_threads(-2)


def test_from_env_reads_thread_count(monkeypatch):
    monkeypatch.setenv(THREADS_ENV_VAR, '3')
    cfg = ProjectConfig.from_env()
    assert cfg.n_threads == 3
    assert cfg.threads == 3


def test_from_env_override_wins(monkeypatch):
    monkeypatch.setenv(THREADS_ENV_VAR, '3')
    assert ProjectConfig.from_env(n_threads=5).n_threads == 5
    # None overrides are ignored
    assert ProjectConfig.from_env(n_threads=None).n_threads == 3


def test_from_env_unset(monkeypatch):
    monkeypatch.delenv(THREADS_ENV_VAR, raising=False)
    assert ProjectConfig.from_env().n_threads == 0


@pytest.mark.parametrize('raw', ['many', '-1'])
def test_from_env_rejects_bad_values(monkeypatch, raw):
    monkeypatch.setenv(THREADS_ENV_VAR, raw)
    with pytest.raises(ValueError, match=THREADS_ENV_VAR):
        ProjectConfig.from_env()
