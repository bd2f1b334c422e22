#!/usr/bin/env python3
"""
Fetch IANA protocol registries and emit Go constants and tables for the ipv4 package.

Usage:
    ipv4-iana-gen > iana.go

Registries:
 - ICMP parameters: ICMPType constants plus a code -> description map
 - Protocol numbers: ianaProtocol constants, with a leading IP pseudo protocol

Reserved, unassigned, deprecated and experimental ICMP types are left out.
Any fetch, decode or gofmt failure aborts the run without printing output.
"""

import json
import re
import subprocess
import sys
from typing import List, NamedTuple

import requests
from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError, fromstring

ICMP_PARAMETERS_URL = "https://www.iana.org/assignments/icmp-parameters/icmp-parameters.xml"
PROTOCOL_NUMBERS_URL = "https://www.iana.org/assignments/protocol-numbers/protocol-numbers.xml"

TIMEOUT = 30
GOFMT = "gofmt"

HEADER = (
    "// python ipv4_iana_gen.py\n"
    "// GENERATED BY THE COMMAND ABOVE; DO NOT EDIT\n"
    "\n"
    "package ipv4\n"
    "\n"
)

# Replacements run in order, each on the result of the previous one.
ICMP_REPLACEMENTS = (
    ("Messages", ""),
    ("Message", ""),
    ("ICMP", ""),
    ("+", "P"),
    ("-", ""),
    ("/", ""),
    (".", ""),
    (" ", ""),
)

PROTOCOL_REPLACEMENTS = (
    ("-in-", "in"),
    ("-within-", "within"),
    ("-over-", "over"),
    ("+", "P"),
    ("-", ""),
    ("/", ""),
    (".", ""),
    (" ", ""),
)

PROTOCOL_NAME_EXCEPTIONS = {
    "ISIS over IPv4": "ISIS",
    "manet": "MANET",
}

ICMP_PLACEHOLDERS = ("Reserved", "Unassigned", "Deprecated", "Experiment", "experiment")

DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


class GeneratorError(Exception):
    pass


class FetchError(GeneratorError):
    pass


class DecodeError(GeneratorError):
    pass


class FormatError(GeneratorError):
    pass


class RawRecord(NamedTuple):
    value: str
    name: str
    descr: str


class SubRegistry(NamedTuple):
    title: str
    records: List[RawRecord]


class CanonICMPv4ParamRecord(NamedTuple):
    orig_descr: str
    descr: str
    value: int


class CanonProtocolRecord(NamedTuple):
    orig_name: str
    name: str
    descr: str
    value: int


def replace_all(s, replacements):
    for old, new in replacements:
        s = s.replace(old, new)
    return s


def atoi(s):
    # int() also takes "1_0", " 3 " and non-ASCII digits
    if not DECIMAL_RE.fullmatch(s):
        return 0
    try:
        return int(s)
    except ValueError:
        return 0


def _local_name(tag):
    # "{http://www.iana.org/assignments}record" -> "record"
    return tag.rsplit("}", 1)[-1]


def _children(elem, name):
    return [child for child in elem if _local_name(child.tag) == name]


def _text(elem, name):
    """Character data directly inside the first child called name, or ""."""
    for child in _children(elem, name):
        parts = [child.text or ""]
        parts.extend(grandchild.tail or "" for grandchild in child)
        return "".join(parts)
    return ""


def _records(elem):
    return [
        RawRecord(_text(r, "value"), _text(r, "name"), _text(r, "description"))
        for r in _children(elem, "record")
    ]


def _parse_registry(data):
    try:
        root = fromstring(data, forbid_dtd=True, forbid_entities=True, forbid_external=True)
    except (ParseError, DefusedXmlException) as e:
        raise DecodeError(f"malformed registry XML: {e}") from e
    if _local_name(root.tag) != "registry":
        raise DecodeError(f"expected <registry> root element, got <{_local_name(root.tag)}>")
    return root


class ICMPv4Parameters:
    def __init__(self, title, updated, registries):
        self.title = title
        self.updated = updated
        self.registries = registries

    def type_registry(self):
        # first match only; later registries mentioning "type" are not type codes
        for registry in self.registries:
            if "type" in registry.title.lower():
                return registry
        return None

    def escape(self):
        registry = self.type_registry()
        if registry is None:
            return []
        prs = []
        for pr in registry.records:
            if not pr.descr or any(p in pr.descr for p in ICMP_PLACEHOLDERS):
                continue
            orig = " ".join(pr.descr.split("\n")).strip()
            prs.append(CanonICMPv4ParamRecord(orig, replace_all(orig, ICMP_REPLACEMENTS), atoi(pr.value)))
        return prs


class ProtocolNumbers:
    def __init__(self, title, updated, records):
        self.title = title
        self.updated = updated
        self.records = records

    def escape(self):
        prs = []
        for pr in self.records:
            name = PROTOCOL_NAME_EXCEPTIONS.get(pr.name)
            if name is None:
                name = replace_all(pr.name.strip(), PROTOCOL_REPLACEMENTS)
            descr = " ".join(line.strip() for line in pr.descr.split("\n"))
            prs.append(CanonProtocolRecord(pr.name, name, descr, atoi(pr.value)))
        return prs


def decode_icmpv4_parameters(data):
    root = _parse_registry(data)
    registries = [SubRegistry(_text(r, "title"), _records(r)) for r in _children(root, "registry")]
    return ICMPv4Parameters(_text(root, "title"), _text(root, "updated"), registries)


def decode_protocol_numbers(data):
    root = _parse_registry(data)
    records = []
    for registry in _children(root, "registry"):
        records.extend(_records(registry))
    return ProtocolNumbers(_text(root, "title"), _text(root, "updated"), records)


def protocol_records(pn):
    ip = CanonProtocolRecord("", "IP", "IPv4 encapsulation, pseudo protocol number", 0)
    return [ip] + pn.escape()


def go_quote(s):
    # non-ASCII stays literal; Go rejects the surrogate pairs ensure_ascii would write
    return json.dumps(s, ensure_ascii=False)


def emit_icmpv4_parameters(icp):
    prs = [pr for pr in icp.escape() if pr.descr]
    header = f"// {icp.title}, Updated: {icp.updated}"

    out_lines = [header, "const ("]
    for pr in prs:
        out_lines.append(f"ICMPType{pr.descr} ICMPType = {pr.value} // {pr.orig_descr}")
    out_lines.append(")")
    out_lines.append("")
    out_lines.append(header)
    out_lines.append("var icmpTypes = map[ICMPType]string{")
    for pr in prs:
        out_lines.append(f"{pr.value}: {go_quote(pr.orig_descr.lower())},")
    out_lines.append("}")
    return "\n".join(out_lines) + "\n"


def emit_protocol_numbers(pn):
    out_lines = [f"// {pn.title}, Updated: {pn.updated}", "const ("]
    for pr in protocol_records(pn):
        if not pr.name:
            continue
        out_lines.append(f"ianaProtocol{pr.name} = {pr.value} // {pr.descr or pr.orig_name}")
    out_lines.append(")")
    return "\n".join(out_lines) + "\n"


def parse_icmpv4_parameters(data):
    return emit_icmpv4_parameters(decode_icmpv4_parameters(data))


def parse_protocol_numbers(data):
    return emit_protocol_numbers(decode_protocol_numbers(data))


REGISTRIES = [
    (ICMP_PARAMETERS_URL, parse_icmpv4_parameters),
    (PROTOCOL_NUMBERS_URL, parse_protocol_numbers),
]


def fetch_registry(url):
    try:
        with requests.get(url, timeout=TIMEOUT) as r:
            if r.status_code != requests.codes.ok:
                raise FetchError(f"got HTTP status code {r.status_code} for {url}")
            return r.content
    except requests.RequestException as e:
        raise FetchError(f"failed to fetch {url}: {e}") from e


def format_source(source):
    try:
        result = subprocess.run(
            [GOFMT],
            input=source,
            capture_output=True,
            encoding="utf-8",
            check=True,
        )
    except FileNotFoundError as e:
        raise FormatError(f"{GOFMT} not found: {e}") from e
    except subprocess.CalledProcessError as e:
        raise FormatError(f"{GOFMT} rejected generated source:\n{e.stderr}") from e
    return result.stdout


def generate(fetch=fetch_registry):
    blocks = [HEADER]
    for url, parse in REGISTRIES:
        blocks.append(parse(fetch(url)))
        blocks.append("\n")
    return format_source("".join(blocks))


def main():
    try:
        source = generate()
    except FetchError as e:
        print("Failed to fetch IANA registry:", e, file=sys.stderr)
        sys.exit(1)
    except DecodeError as e:
        print("Failed to decode IANA registry:", e, file=sys.stderr)
        sys.exit(1)
    except FormatError as e:
        print("Failed to format generated source:", e, file=sys.stderr)
        sys.exit(1)

    sys.stdout.buffer.write(source.encode("utf-8"))


if __name__ == "__main__":
    main()
