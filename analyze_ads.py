#!/usr/bin/env python3
"""
Ad Trace Analyzer - command line facade
"""

import json
import logging
import sys

from ad_trace_analyzer import AdTraceAnalyzer, AnalysisConfig
from ad_trace_analyzer.audits import run_audits
from ad_trace_analyzer.web import prepare_results


def main():
    import argparse
    parser = argparse.ArgumentParser(
        description='Analyze a captured page load and audit its ad requests.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python analyze_ads.py artifacts.json
  python analyze_ads.py artifacts.json --concurrency 10
  python analyze_ads.py artifacts.json --captured-durations
  python analyze_ads.py artifacts.json --ancestry -o results.json
        """
    )
    parser.add_argument('input_file', help='Path to the artifact JSON file')
    parser.add_argument('-o', '--output', dest='output_file', default='ad_analysis.json', help='Output JSON file')
    parser.add_argument('--concurrency', type=int, default=6,
                        help='Connection slots used by the timing simulator')
    parser.add_argument('--captured-durations', action='store_true',
                        help='Keep captured request durations instead of the network model')
    parser.add_argument('--ancestry', action='store_true',
                        help='Treat every ancestor as blocking, not only the latest-finishing one')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug details')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s'
    )

    try:
        config = AnalysisConfig(
            max_concurrent_requests=args.concurrency,
            use_captured_durations=args.captured_durations,
            critical_path_mode='ancestry' if args.ancestry else 'gating'
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(2)

    analyzer = AdTraceAnalyzer(config=config)

    try:
        print(f"\nConfiguration:")
        print(f"  Input file: {args.input_file}")
        print(f"  Connection slots: {config.max_concurrent_requests}")
        print(f"  Captured durations: {config.use_captured_durations}")
        print(f"  Critical path mode: {config.critical_path_mode}\n")

        artifacts, analysis = analyzer.process_artifact_file(args.input_file)
        audits = run_audits(artifacts, analyzer)
        results = prepare_results(analyzer, analysis, audits)

        with open(args.output_file, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2)

        for audit_id, result in audits.items():
            if result['not_applicable_reason']:
                print(f"  {audit_id}: not applicable ({result['not_applicable_reason']})")
            else:
                print(f"  {audit_id}: score {result['score']:.2f} {result['display_value']}")
        print(f"\n✓ Analysis complete! Results written to {args.output_file}")
    except FileNotFoundError:
        print(f"Error: File '{args.input_file}' not found.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
