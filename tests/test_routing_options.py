import pytest

from p2pcore.routing_options import Options, expired, offline


def test_apply_expired():
    opts = Options()
    opts.apply(expired)
    assert opts.expired is True
    assert opts.offline is False


def test_apply_several():
    opts = Options()
    opts.apply(expired, offline)
    assert (opts.expired, opts.offline) == (True, True)


def test_apply_nothing_keeps_defaults():
    opts = Options()
    opts.apply()
    assert opts == Options()


def test_to_option_copies_fields():
    source = Options(offline=True, other={"k": 1})
    target = Options(expired=True)
    target.apply(source.to_option())
    assert target == source
    assert target.other is not source.other


def test_to_option_copy_is_independent():
    source = Options(other={"k": 1})
    target = Options()
    target.apply(source.to_option())
    target.other["k"] = 2
    assert source.other == {"k": 1}


def test_to_option_clears_other_when_source_has_none():
    target = Options(other={"x": "y"})
    target.apply(Options().to_option())
    assert target.other is None


def test_failing_option_stops_application():
    def failing(opts):
        raise ValueError("rejected")

    opts = Options()
    with pytest.raises(ValueError, match="rejected"):
        opts.apply(expired, failing, offline)
    assert opts.expired is True
    assert opts.offline is False