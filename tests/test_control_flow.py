from bmsparser.parser.control_flow import RandomResolver


def test_only_directives_are_consumed():
    resolver = RandomResolver(selected=[1])
    assert resolver.process("#RANDOM 2")
    assert resolver.process("#IF 1")
    assert resolver.process("#ENDIF")
    assert resolver.process("#ENDRANDOM")
    assert not resolver.process("#TITLE foo")
    assert not resolver.process("#00111:01")


def test_if_selects_matching_branch():
    resolver = RandomResolver(selected=[2])
    resolver.process("#RANDOM 2")
    resolver.process("#IF 1")
    assert not resolver.is_active
    resolver.process("#ENDIF")
    assert resolver.is_active
    resolver.process("#IF 2")
    assert resolver.is_active
    resolver.process("#ENDIF")
    resolver.process("#ENDRANDOM")
    assert resolver.depth == 0


def test_directives_are_case_insensitive():
    resolver = RandomResolver(selected=[2])
    resolver.process("#random 2")
    resolver.process("#if 1")
    assert not resolver.is_active
    resolver.process("#endif")
    resolver.process("#endrandom")
    assert resolver.depth == 0


def test_nested_region_inside_inactive_region_is_inactive():
    resolver = RandomResolver(selected=[1, 1])
    resolver.process("#RANDOM 2")
    resolver.process("#IF 2")
    resolver.process("#RANDOM 2")
    resolver.process("#IF 1")
    assert not resolver.is_active
    resolver.process("#ENDIF")
    resolver.process("#ENDRANDOM")
    assert not resolver.is_active
    resolver.process("#ENDIF")
    assert resolver.is_active


def test_nested_random_consumes_selection_in_inactive_region():
    resolver = RandomResolver(selected=[2, 1, 3])
    resolver.process("#RANDOM 2")
    resolver.process("#IF 1")
    resolver.process("#RANDOM 2")
    resolver.process("#ENDRANDOM")
    resolver.process("#ENDIF")
    resolver.process("#ENDRANDOM")
    resolver.process("#RANDOM 3")
    resolver.process("#IF 3")
    assert resolver.is_active


def test_malformed_bound_falls_back_to_one():
    resolver = RandomResolver()
    resolver.process("#RANDOM abc")
    resolver.process("#IF 1")
    assert resolver.is_active


def test_malformed_if_value_falls_back_to_zero():
    resolver = RandomResolver(selected=[1])
    resolver.process("#RANDOM 2")
    resolver.process("#IF x")
    assert not resolver.is_active


def test_random_value_is_within_bound():
    for _ in range(50):
        resolver = RandomResolver()
        resolver.begin_random(5)
        assert 1 <= resolver._stack[-1].value <= 5


def test_unbalanced_directives_are_ignored():
    resolver = RandomResolver()
    resolver.process("#IF 1")
    resolver.process("#ENDIF")
    resolver.process("#ENDRANDOM")
    assert resolver.is_active
    assert not resolver.used


def test_used_flag():
    resolver = RandomResolver(selected=[1])
    assert not resolver.used
    resolver.process("#RANDOM 1")
    assert resolver.used
