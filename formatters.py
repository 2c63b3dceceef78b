"""gobreakcheck output formatters: plain text, JSON, and SARIF v2.1.0.

Each formatter exposes a single `format(results: list[PackageResult]) -> str`
method so the CLI layer stays thin and testable.
"""
import json
from typing import Dict, List

from analyzer import PackageResult
from comparer import Finding, Site


class TextFormatter:
    """Indented per-package blocks, one per finding.

    Packages without findings produce no output at all.
    """

    def format(self, results: List[PackageResult]) -> str:
        blocks = []
        for result in results:
            if result.removed:
                blocks.append(f"{result.package}: package removed\n")
                continue
            if not len(result.report):
                continue
            lines = [f"{result.package}:"]
            for finding in result.report:
                lines.append("")
                lines.append(f"  • {finding.reason}:")
                for site in finding.sites:
                    lines.append(f"    - {site.location}:")
                    lines.append(f"        {site.signature}")
            blocks.append("\n".join(lines) + "\n")
        return "\n".join(blocks)


PACKAGE_REMOVED = "package_removed"


def _severity(kind: str) -> str:
    # every comparer finding breaks callers; a removed package is reported
    # for information only
    return "info" if kind == PACKAGE_REMOVED else "breaking"


def _site_dict(site: Site) -> Dict:
    return {
        "path": site.path,
        "line": site.line,
        "snapshot": site.snapshot,
        "ref": site.ref,
        "signature": site.signature,
    }


def _file(package: str, site: Site) -> str:
    if package in ("", "."):
        return site.path
    return f"{package}/{site.path}"


class JsonFormatter:
    """Machine-readable JSON array output for CI pipeline consumption.

    Each element: {package, kind, symbol, reason, severity, locations}.
    A removed package is one `package_removed` element with severity `info`
    and no locations.
    """

    def format(self, results: List[PackageResult]) -> str:
        out = []
        for result in results:
            if result.removed:
                out.append({
                    "package": result.package,
                    "kind": PACKAGE_REMOVED,
                    "symbol": result.package,
                    "reason": "Package removed",
                    "severity": _severity(PACKAGE_REMOVED),
                    "locations": [],
                })
                continue
            for f in result.report:
                out.append({
                    "package": result.package,
                    "kind": f.kind,
                    "symbol": f.symbol,
                    "reason": f.reason,
                    "severity": _severity(f.kind),
                    "locations": [_site_dict(s) for s in f.sites],
                })
        return json.dumps(out, indent=2)


class SarifFormatter:
    """SARIF v2.1.0 output for GitHub Code Scanning / Azure DevOps integration.

    Results point at the prior snapshot's declaration; the current one, when
    there is one, goes in ``relatedLocations``. Removed packages are emitted
    as `note` results located at the package directory.
    """

    SARIF_SCHEMA = (
        "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/"
        "sarif-2.1/schema/sarif-schema-2.1.0.json"
    )

    def format(self, results: List[PackageResult]) -> str:
        rules: Dict[str, dict] = {}
        sarif_results = []

        for result in results:
            if result.removed:
                self._add_rule(rules, PACKAGE_REMOVED)
                sarif_results.append(self._removed(result.package))
                continue
            for f in result.report:
                self._add_rule(rules, f.kind)
                sarif_results.append(self._result(result.package, f))

        sarif = {
            "$schema": self.SARIF_SCHEMA,
            "version": "2.1.0",
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": "gobreakcheck",
                            "version": "0.1.0",
                            "rules": list(rules.values()),
                        }
                    },
                    "results": sarif_results,
                }
            ],
        }
        return json.dumps(sarif, indent=2)

    @staticmethod
    def _level(kind: str) -> str:
        """Map finding severity to SARIF level."""
        return "note" if _severity(kind) == "info" else "error"

    def _add_rule(self, rules: Dict[str, dict], kind: str) -> None:
        if kind not in rules:
            rules[kind] = {
                "id": kind,
                "shortDescription": {"text": kind.replace("_", " ").capitalize()},
                "defaultConfiguration": {"level": self._level(kind)},
            }

    def _removed(self, package: str) -> dict:
        return {
            "ruleId": PACKAGE_REMOVED,
            "level": self._level(PACKAGE_REMOVED),
            "message": {"text": f"{package}: package removed"},
            "locations": [
                {"physicalLocation": {"artifactLocation": {"uri": package}}}
            ],
        }

    def _result(self, package: str, finding: Finding) -> dict:
        locations = [self._location(package, s) for s in finding.sites]
        result = {
            "ruleId": finding.kind,
            "level": self._level(finding.kind),
            "message": {"text": f"{finding.symbol}: {finding.reason}"},
            "locations": locations[:1],
        }
        if len(locations) > 1:
            result["relatedLocations"] = locations[1:]
        return result

    @staticmethod
    def _location(package: str, site: Site) -> dict:
        return {
            "physicalLocation": {
                "artifactLocation": {"uri": _file(package, site)},
                "region": {"startLine": site.line},
            },
            "message": {"text": site.signature},
        }
