import pytest

from meshmgmt.groups import Resource
from meshmgmt.policies import (
    Policy,
    PolicyRule,
    PolicyRuleDirection,
    PolicyRuleProtocol,
    PolicyTrafficAction,
    PolicyUpdateOperation,
    RulePortRange,
)


def _rule(**kwargs):
    return PolicyRule(**kwargs)


def test_enum_values_match_wire_strings():
    assert PolicyTrafficAction("accept") is PolicyTrafficAction.ACCEPT
    assert PolicyTrafficAction("drop") is PolicyTrafficAction.DROP
    assert PolicyRuleProtocol("icmp") is PolicyRuleProtocol.ICMP
    assert PolicyRuleDirection("bidirect") is PolicyRuleDirection.BIDIRECT


def test_port_range_to_proto():
    assert RulePortRange(80, 443).to_proto() == {"range": {"start": 80, "end": 443}}


def test_port_range_equality():
    assert RulePortRange(10, 20) == RulePortRange(10, 20)
    assert not RulePortRange(10, 20) == RulePortRange(10, 21)


@pytest.mark.parametrize("start,end", [(-1, 10), (10, 70000)])
def test_port_range_rejects_out_of_range(start, end):
    with pytest.raises(ValueError):
        RulePortRange(start, end)


def test_update_operation_holds_values():
    op = PolicyUpdateOperation(type=2, values=["a", "b"])
    assert op.values == ["a", "b"]
    assert op.type == 2


def test_upgrade_and_fix_sets_default_protocol_and_bidirectional():
    rule = _rule(id="r1")
    policy = Policy(rules=[rule])
    policy.upgrade_and_fix()
    assert rule.protocol is PolicyRuleProtocol.ALL
    assert rule.bidirectional is True


def test_upgrade_and_fix_leaves_tcp_rule_direction():
    rule = _rule(id="r1", protocol=PolicyRuleProtocol.TCP, bidirectional=False)
    Policy(rules=[rule]).upgrade_and_fix()
    assert rule.protocol is PolicyRuleProtocol.TCP
    assert rule.bidirectional is False


def test_rule_groups_lists_sources_then_destinations():
    policy = Policy(
        rules=[
            _rule(sources=["s1"], destinations=["d1", "d2"]),
            _rule(sources=["s2"], destinations=["d1"]),
        ]
    )
    assert policy.rule_groups() == ["s1", "d1", "d2", "s2", "d1"]


def test_rule_groups_empty_without_rules():
    assert Policy().rule_groups() == []


def test_source_groups_single_rule_keeps_duplicates():
    policy = Policy(rules=[_rule(sources=["a", "a", "b"])])
    assert policy.source_groups() == ["a", "a", "b"]


def test_source_groups_multiple_rules_unique():
    policy = Policy(
        rules=[_rule(sources=["a", "b"]), _rule(sources=["b", "c"])]
    )
    result = policy.source_groups()
    assert sorted(result) == ["a", "b", "c"]
    assert len(result) == len(set(result))


def test_policy_copy_is_deep():
    rule = _rule(
        id="r1",
        sources=["s"],
        destinations=["d"],
        ports=["80"],
        port_ranges=[RulePortRange(1, 2)],
        source_resource=Resource(id="res", type="host"),
    )
    policy = Policy(id="p", name="web", rules=[rule], source_posture_checks=["pc"])
    clone = policy.copy()
    assert clone == policy

    clone.rules[0].sources.append("x")
    clone.rules[0].source_resource.id = "other"
    clone.source_posture_checks.append("y")
    assert policy.rules[0].sources == ["s"]
    assert policy.rules[0].source_resource.id == "res"
    assert policy.source_posture_checks == ["pc"]


def test_event_meta_carries_name():
    assert Policy(name="web").event_meta() == {"name": "web"}