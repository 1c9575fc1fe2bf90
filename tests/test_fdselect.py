import os
import signal
import sys
import time

import pytest

from moshutil.fdselect import Select
from moshutil.timestamp import frozen_timestamp


@pytest.fixture
def pipe():
    read_end, write_end = os.pipe()
    yield read_end, write_end
    os.close(read_end)
    os.close(write_end)


@pytest.fixture
def usr1():
    previous = signal.getsignal(signal.SIGUSR1)
    old_mask = signal.pthread_sigmask(signal.SIG_BLOCK, ())
    Select.add_signal(signal.SIGUSR1)
    yield Select.get_instance()
    signal.signal(signal.SIGUSR1, previous)
    signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)


@pytest.fixture
def verbose():
    Select.set_verbose(2)
    yield
    Select.set_verbose(0)


def _run_forked(action):
    """Run ``action`` in a forked child; return its wait status and stderr."""
    read_end, write_end = os.pipe()
    pid = os.fork()
    if pid == 0:
        os.close(read_end)
        os.dup2(write_end, 2)
        sys.stderr = open(write_end, "w", buffering=1, closefd=False)
        try:
            action()
        finally:
            os.kill(os.getpid(), signal.SIGKILL)
    os.close(write_end)
    chunks = []
    while True:
        chunk = os.read(read_end, 4096)
        if not chunk:
            break
        chunks.append(chunk)
    os.close(read_end)
    _, status = os.waitpid(pid, 0)
    return status, b"".join(chunks).decode("utf-8", "replace")


def test_get_instance_is_shared(pipe):
    read_end, write_end = pipe
    Select.get_instance().add_fd(read_end)
    try:
        os.write(write_end, b"x")
        assert Select.get_instance().select(1000) == 1
        assert Select.get_instance().read(read_end) is True
    finally:
        Select.get_instance().clear_fds()


def test_idle_pipe_times_out(pipe):
    read_end, _ = pipe
    sel = Select()
    sel.add_fd(read_end)
    assert sel.select(10) == 0
    assert sel.read(read_end) is False


def test_readable_pipe_is_reported(pipe):
    read_end, write_end = pipe
    sel = Select()
    sel.add_fd(read_end)
    os.write(write_end, b"x")
    assert sel.select(1000) == 1
    assert sel.read(read_end) is True


def test_readiness_resets_between_waits(pipe):
    read_end, write_end = pipe
    sel = Select()
    sel.add_fd(read_end)
    os.write(write_end, b"x")
    sel.select(1000)
    os.read(read_end, 1)
    assert sel.select(0) == 0
    assert sel.read(read_end) is False


def test_read_of_unwatched_descriptor_raises(pipe):
    read_end, write_end = pipe
    sel = Select()
    sel.add_fd(read_end)
    with pytest.raises(ValueError):
        sel.read(write_end)


def test_clear_fds_forgets_descriptors(pipe):
    read_end, write_end = pipe
    sel = Select()
    sel.add_fd(read_end)
    sel.clear_fds()
    os.write(write_end, b"x")
    assert sel.select(0) == 0
    with pytest.raises(ValueError):
        sel.read(read_end)


def test_select_freezes_timestamp():
    before = frozen_timestamp()
    time.sleep(0.02)
    Select().select(0)
    assert frozen_timestamp() > before


def test_signal_interrupts_wait_and_is_consumed(usr1):
    sel = usr1
    os.kill(os.getpid(), signal.SIGUSR1)
    started = time.monotonic()
    assert sel.select(5000) == 0
    assert time.monotonic() - started < 4
    assert sel.any_signal() is True
    assert sel.any_signal() is True
    assert sel.signal(signal.SIGUSR1) is True
    assert sel.signal(signal.SIGUSR1) is False
    assert sel.any_signal() is False


def test_signal_blocked_outside_wait(usr1):
    sel = usr1
    os.kill(os.getpid(), signal.SIGUSR1)
    assert signal.SIGUSR1 in signal.sigpending()
    sel.select(0)
    assert signal.SIGUSR1 not in signal.sigpending()
    assert sel.signal(signal.SIGUSR1) is True


def test_next_wait_clears_old_notices(usr1):
    sel = usr1
    os.kill(os.getpid(), signal.SIGUSR1)
    sel.select(1000)
    sel.select(0)
    assert sel.signal(signal.SIGUSR1) is False


def test_rate_limit_message_after_many_polls(verbose, capsys):
    sel = Select()
    for _ in range(10):
        sel.select(0)
    err = capsys.readouterr().err
    assert "select: got poll (timeout 0)" in err
    assert "select: got 10 polls, rate limiting." in err


def test_consecutive_polls_reported_on_reset(verbose, capsys):
    sel = Select()
    for _ in range(12):
        sel.select(0)
    capsys.readouterr()
    sel.select(1)
    assert "select: got 12 consecutive polls" in capsys.readouterr().err


def test_quiet_by_default(capsys):
    sel = Select()
    for _ in range(11):
        sel.select(0)
    assert capsys.readouterr().err == ""


def test_out_of_range_signal_aborts():
    status, err = _run_forked(lambda: Select.get_instance().signal(65))
    assert os.WIFSIGNALED(status)
    assert os.WTERMSIG(status) == signal.SIGABRT
    assert "Fatal assertion failure" in err
    assert "signum <= MAX_SIGNAL_NUMBER" in err


def test_negative_signal_registration_aborts():
    status, err = _run_forked(lambda: Select.add_signal(-1))
    assert os.WIFSIGNALED(status)
    assert os.WTERMSIG(status) == signal.SIGABRT
    assert "Failed test: signum >= 0" in err