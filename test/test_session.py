"""
Tests for actor-backed Lox sessions
"""

import threading

import pytest
from session import start_session, get_session, terminate_all


class TestSessions:
    """Test running Lox through a session actor"""

    @pytest.fixture
    def session(self):
        """Start a session and stop every session afterwards"""
        proxy = start_session()
        yield proxy
        terminate_all()

    def test_run_captures_output(self, session):
        result = session.run('print "hello";').get()
        assert result == {'status': 'ok', 'phase': None, 'output': "hello\n", 'error': None}

    def test_globals_persist_between_runs(self, session):
        session.run("var total = 40;").get()
        result = session.run("total = total + 2; print total;").get()
        assert result['output'] == "42\n"
        assert session.get_global("total").get() == 42.0

    def test_parse_error_phase(self, session):
        result = session.run("print 1").get()
        assert result['status'] == 'error'
        assert result['phase'] == 'parse'

    def test_static_error_phase(self, session):
        result = session.run('print "before"; { var a = 1; var a = 2; }').get()
        assert result['phase'] == 'resolve'
        assert result['output'] == ""
        assert "Already a variable with this name in this scope." in result['error']

    def test_runtime_error_keeps_output(self, session):
        result = session.run('print "before"; print missing;').get()
        assert result['phase'] == 'runtime'
        assert result['output'] == "before\n"
        assert result['error'] == "Undefined variable 'missing'.\n[line 1]"

    def test_define_native(self, session):
        session.define_native("twice", 1, lambda n: n * 2).get()
        result = session.run("print twice(21);").get()
        assert result['output'] == "42\n"

    def test_native_int_result_is_a_number(self, session):
        session.define_native("answer", 0, lambda: 42).get()
        result = session.run("print answer() == 42; print answer() + 1; print answer();").get()
        assert result['status'] == 'ok'
        assert result['output'] == "true\n43\n42\n"

    def test_native_bool_result_stays_bool(self, session):
        session.define_native("yes", 0, lambda: True).get()
        result = session.run("print yes(); print yes() == 1;").get()
        assert result['output'] == "true\nfalse\n"

    def test_get_unknown_global(self, session):
        assert session.get_global("nothing").get() is None

    def test_lookup_by_id(self, session):
        session_id = session.session_id.get()
        same = get_session(session_id)
        assert same is not None
        session.run("var shared = 1;").get()
        assert same.get_global("shared").get() == 1.0

    def test_calls_from_many_threads_are_serialized(self, session):
        session.run("var counter = 0; fun bump() { counter = counter + 1; }").get()

        def worker():
            for _ in range(25):
                session.run("bump();").get()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert session.get_global("counter").get() == 100.0

    def test_terminate_all(self):
        proxy = start_session()
        session_id = proxy.session_id.get()
        terminate_all()
        assert get_session(session_id) is None
