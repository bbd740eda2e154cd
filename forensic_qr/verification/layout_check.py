"""
Sealed Report Layout Check.

The digest covers the canonical package, not the report text around it:
section titles are upper-cased before hashing, and labels, rules, heading
ordinals and the status line are not hashed at all. LayoutCheck renders
the parsed package again with PackageFormatter and compares the result
with the scanned text line by line, so an edit anywhere in the report is
caught even when the digest still matches.

Lines exempt from the comparison:
    - the banner line, whose block characters depend on the decoder's
      charset guess
    - the value of the display TIMESTAMP line (local-time rendering)
    - the year in the copyright footer

Scalar lines read through a label from an earlier report revision are
compared on label and value only; older revisions aligned their labels
differently.

Author: Forensic Engineering Team
"""

import re
from typing import Callable, List, Optional, Tuple

from forensic_qr.utils.logger import get_logger
from forensic_qr.sealing import layout
from forensic_qr.sealing.formatter import PackageFormatter
from .parser import FIELD_RULES, FieldRule
from .results import ScanResult

# Initialize module logger
logger = get_logger(__name__)

LineMatcher = Callable[[str], bool]

FOOTER_PATTERN = re.compile(rf'^\(C\) \d* ?{re.escape(layout.FAMILY_MARKER)}$')
DISPLAY_TIMESTAMP_PREFIX = f"{layout.LABEL_TIMESTAMP} :"


def _exact(expected: str) -> LineMatcher:
    return lambda actual: actual == expected


def _labelled(label: str, value: str) -> LineMatcher:
    pattern = re.compile(rf'^{re.escape(label)}\s*:\s*{re.escape(value)}$')
    return lambda actual: pattern.match(actual) is not None


def _any_line(actual: str) -> bool:
    return True


def _display_timestamp(actual: str) -> bool:
    return actual.startswith(DISPLAY_TIMESTAMP_PREFIX)


def _footer(actual: str) -> bool:
    return FOOTER_PATTERN.match(actual) is not None


class LayoutCheck:
    """
    Compares a recognized report with the layout its package renders to.

    Attributes:
        formatter: PackageFormatter used to re-render the package
        field_rules: Scalar rules, used to map labels to package fields

    Example:
        >>> check = LayoutCheck()
        >>> check.deviations(PackageParser().parse(sealed.report_text))
        []
    """

    def __init__(
        self,
        formatter: Optional[PackageFormatter] = None,
        field_rules: Tuple[FieldRule, ...] = FIELD_RULES
    ) -> None:
        self.formatter = formatter or PackageFormatter()
        self.field_rules = field_rules

    def deviations(self, scan: ScanResult) -> List[int]:
        """
        Find report lines that differ from the rendered layout.

        Surrounding blank lines and trailing whitespace are ignored.

        Args:
            scan: Parser result.

        Returns:
            1-based line numbers (within the stripped report) that deviate;
            empty for a conforming or unrecognized scan. A report with
            missing or extra lines deviates at the first line past the
            shorter of the two.
        """
        if not scan.recognized:
            return []

        expected = self._matchers(scan)
        actual = [line.rstrip() for line in scan.raw_text.strip().split("\n")]

        deviating = [
            number
            for number, (matcher, line) in enumerate(zip(expected, actual), 1)
            if not matcher(line)
        ]
        if len(expected) != len(actual):
            deviating.append(min(len(expected), len(actual)) + 1)

        if deviating:
            logger.debug(f"Report layout deviates at line(s) {deviating}")
        return deviating

    def _matchers(self, scan: ScanResult) -> List[LineMatcher]:
        """One matcher per line the scanned report should have."""
        rendered = [line.rstrip() for line in self.formatter.format(scan.package, scan.digest).split("\n")]
        manifest_at = rendered.index(layout.MANIFEST_MARKER)
        signature_at = len(rendered) - 1 - rendered[::-1].index(layout.SIGNATURE_MARKER)

        rules = {rule.primary_label: rule for rule in self.field_rules}
        header_labels = {
            line.split(':', 1)[0].strip() for line in rendered[:manifest_at] if ':' in line
        }

        matchers: List[LineMatcher] = []
        for index, line in enumerate(rendered):
            if index == 0:
                matchers.append(_any_line)
                continue

            if index > signature_at and _footer(line):
                matchers.append(_footer)
                continue

            if index < manifest_at and ':' in line:
                label, value = (part.strip() for part in line.split(':', 1))
                if label == layout.LABEL_TIMESTAMP:
                    matchers.append(_display_timestamp)
                    continue

                rule = rules.get(label)
                if rule is not None:
                    used = scan.field_labels.get(rule.attribute)
                    # Field missing from the scan, or carried by another
                    # line of the current layout (legacy timestamp)
                    if used is None or (used != label and used in header_labels):
                        continue
                    if used != label:
                        matchers.append(_labelled(used, value))
                        continue

            matchers.append(_exact(line))

        return matchers
