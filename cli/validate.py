"""Validate a certificate payload against a local rule set.

Usage:
    uv run certlogic-validate --rules rules.json --schema DCC.combined-schema.json \\
        --payload payload.json --country CZ --issuer-country DE \\
        --certificate-type Vaccination

Exit Codes:
    0 - No rule failed
    1 - At least one rule failed
    2 - Invalid input (unreadable files, malformed rules or payload)
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

from certlogic_engine.core.dependencies import load_engine_from_files
from certlogic_engine.core.errors import CertLogicEngineError
from certlogic_engine.domain.enums import CertificateType, Result, ValidationType
from certlogic_engine.domain.models import ExternalParameter, FilterParameter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate a digital health certificate payload with CertLogic rules"
    )
    parser.add_argument("--rules", required=True, type=Path, help="JSON array of rules")
    parser.add_argument("--schema", required=True, type=Path, help="Certificate JSON schema")
    parser.add_argument("--payload", required=True, type=Path, help="Decoded certificate payload")
    parser.add_argument("--country", required=True, help="Destination country code")
    parser.add_argument("--issuer-country", required=True, help="Issuer country code")
    parser.add_argument(
        "--certificate-type",
        required=True,
        choices=[c.value for c in CertificateType],
        help="Certificate type being validated",
    )
    parser.add_argument("--region", default=None, help="Destination region (optional)")
    parser.add_argument(
        "--clock",
        default=None,
        help="Validation clock as ISO 8601 (default: now, UTC)",
    )
    parser.add_argument(
        "--validation-type",
        default=ValidationType.ALL.value,
        choices=[v.value for v in ValidationType],
        help="Role profile (default: all)",
    )
    parser.add_argument(
        "--details",
        action="store_true",
        help="Include affected-field details for failed and open rules",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        clock = datetime.fromisoformat(args.clock) if args.clock else datetime.now(UTC)
    except ValueError:
        print(f"ERROR: invalid --clock value '{args.clock}'", file=sys.stderr)
        return 2

    try:
        engine = load_engine_from_files(args.schema, args.rules)
        payload = args.payload.read_text(encoding="utf-8")
        filter = FilterParameter(
            validation_clock=clock,
            country_code=args.country,
            certificate_type=CertificateType(args.certificate_type),
            region=args.region,
        )
        external = ExternalParameter(
            validation_clock=clock,
            country_code=args.country,
            issuer_country_code=args.issuer_country,
            region=args.region,
        )
        results = engine.validate(
            filter, external, payload, ValidationType(args.validation_type)
        )
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except CertLogicEngineError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        print(json.dumps(e.details, indent=2, default=str), file=sys.stderr)
        return 2

    output = []
    for result in results:
        entry: dict = {
            "identifier": result.rule.identifier if result.rule else None,
            "version": result.rule.version if result.rule else None,
            "result": result.result.value,
            "errors": [str(error) for error in result.validation_errors or []],
        }
        if args.details and result.rule and result.result != Result.PASSED:
            entry["details"] = engine.get_details_of_error(result.rule, filter, payload)
        output.append(entry)

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 1 if any(result.result == Result.FAIL for result in results) else 0


if __name__ == "__main__":
    raise SystemExit(main())
