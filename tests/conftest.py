from __future__ import annotations

from collections.abc import Callable

import pytest

import ipv4_iana_gen as gen

ICMP_XML = b"""<?xml version='1.0' encoding='UTF-8'?>
<registry xmlns="http://www.iana.org/assignments" id="icmp-parameters">
  <title>Internet Control Message Protocol (ICMP) Parameters</title>
  <updated>2024-01-22</updated>
  <registry id="icmp-parameters-types">
    <title>ICMP Type Numbers</title>
    <record>
      <value>0</value>
      <description>Echo Reply</description>
      <xref type="rfc" data="rfc792"/>
    </record>
    <record>
      <value>1-2</value>
      <description>Unassigned</description>
    </record>
    <record>
      <value>3</value>
      <description>Destination Unreachable</description>
    </record>
    <record>
      <value>4</value>
      <description>Source Quench (Deprecated)</description>
    </record>
    <record>
      <value>41</value>
      <description>ICMP messages utilized by experimental
          mobility protocols such as Seamoby</description>
    </record>
    <record>
      <value>42</value>
      <description>Extended Echo Request</description>
    </record>
    <record>
      <value>253</value>
      <description>RFC3692-style Experiment 1</description>
    </record>
    <record>
      <value>255</value>
      <description>Reserved</description>
    </record>
  </registry>
  <registry id="icmp-parameters-codes-3">
    <title>Type 3 - Destination Unreachable</title>
    <record>
      <value>0</value>
      <description>Net Unreachable</description>
    </record>
  </registry>
</registry>
"""

PROTOCOL_XML = b"""<?xml version='1.0' encoding='UTF-8'?>
<registry xmlns="http://www.iana.org/assignments" id="protocol-numbers">
  <title>Protocol Numbers</title>
  <updated>2024-02-07</updated>
  <registry id="protocol-numbers-1">
    <title>Assigned Internet Protocol Numbers</title>
    <note>In the Internet Protocol version 4 (IPv4) there is a field.</note>
    <record>
      <value>0</value>
      <name>HOPOPT</name>
      <description>IPv6 Hop-by-Hop Option</description>
    </record>
    <record>
      <value>4</value>
      <name>IPv4</name>
      <description>IPv4 encapsulation</description>
    </record>
    <record>
      <value>41</value>
      <name>IPv6</name>
      <description>IPv6 encapsulation</description>
    </record>
    <record>
      <value>43</value>
      <name>IPv6-Route</name>
      <description>Routing Header for
          IPv6</description>
    </record>
    <record>
      <value>97</value>
      <name>ETHERIP</name>
      <description>Ethernet-within-IP Encapsulation</description>
    </record>
    <record>
      <value>124</value>
      <name>ISIS over IPv4</name>
      <description></description>
    </record>
    <record>
      <value>138</value>
      <name>manet</name>
      <description>MANET Protocols</description>
    </record>
    <record>
      <value>146-252</value>
      <description>Unassigned</description>
    </record>
  </registry>
</registry>
"""


@pytest.fixture
def icmp_xml() -> bytes:
    return ICMP_XML


@pytest.fixture
def protocol_xml() -> bytes:
    return PROTOCOL_XML


@pytest.fixture
def fake_fetch() -> Callable[[str], bytes]:
    documents = {
        gen.ICMP_PARAMETERS_URL: ICMP_XML,
        gen.PROTOCOL_NUMBERS_URL: PROTOCOL_XML,
    }

    def _fetch(url: str) -> bytes:
        return documents[url]

    return _fetch


@pytest.fixture
def passthrough_gofmt(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Replace gofmt with an identity formatter; collects every input it sees."""
    seen: list[str] = []

    def _format(source: str) -> str:
        seen.append(source)
        return source

    monkeypatch.setattr(gen, "format_source", _format)
    return seen
