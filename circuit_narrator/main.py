"""
Main entry point for the Circuit Narrator.

Command line interface for browsing the component catalog, identifying
components in photos and narrating their descriptions to WAV files.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .catalog import ComponentCatalog
from .config import Config
from .errors import NarratorError, NoConfidentMatch, error_handler
from .identification import ComponentIdentifier, load_image
from .inference import ModelCache
from .models import ComponentCategory
from .progress import ProcessingStage, ProgressTracker
from .speech import SpeechSynthesizer, save_wav, segment


def setup_logging(verbose: bool = False, quiet: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            # keep stdout clean for --json output
            logging.StreamHandler(sys.stderr if quiet else sys.stdout)
        ]
    )


def report_error(error: NarratorError) -> None:
    """Print an error and its first suggested action to stderr."""
    processing_error = error.processing_error
    error_handler.add_error(processing_error)
    print(f"❌ {processing_error.message}", file=sys.stderr)
    if processing_error.details:
        print(f"   {processing_error.details}", file=sys.stderr)
    if processing_error.suggested_actions:
        print(f"   Suggestion: {processing_error.suggested_actions[0]}", file=sys.stderr)


def cmd_list(args, catalog: ComponentCatalog) -> int:
    components = list(catalog)
    if args.category:
        try:
            category = ComponentCategory(args.category.lower())
        except ValueError:
            valid = ', '.join(c.value for c in ComponentCategory)
            print(f'Invalid category: "{args.category}". Valid: {valid}', file=sys.stderr)
            return 1
        components = catalog.by_category(category)

    if args.json:
        data = [{'id': c.id, 'name': c.name, 'category': c.category.value} for c in components]
        print(json.dumps(data, indent=2))
        return 0

    total = len(components)
    if args.category:
        print(f"\nElectronics Components: {args.category.lower()} ({total})\n")
    else:
        print(f"\nElectronics Components ({total} total)\n")

    for category in ComponentCategory:
        group = [c for c in components if c.category == category]
        if not group:
            continue
        print(f"  {category.value.capitalize()} ({len(group)}):")
        for component in group:
            print(f"    {component.id:<18} {component.name}")
        print()
    return 0


def cmd_info(args, catalog: ComponentCatalog) -> int:
    component = catalog.get(args.component_id)

    if args.json:
        print(json.dumps(component.to_dict(), indent=2))
        return 0

    print()
    print(component.name)
    print("=" * len(component.name))
    print(f"Category: {component.category.value}")
    print()
    print("Description:")
    print(f"  {component.description}")
    print()
    if component.specs:
        print("Specs:")
        for label, value in component.specs:
            print(f"  {label:<20} {value}")
        print()
    if component.circuit_example:
        print("Circuit Example:")
        print(f"  {component.circuit_example}")
        print()
    return 0


def cmd_identify(args, catalog: ComponentCatalog, model_cache: ModelCache) -> int:
    image = load_image(args.image)
    identifier = ComponentIdentifier(model_cache, catalog)

    tracker = ProgressTracker(enable_console_output=not args.json)
    tracker.start_stage(ProcessingStage.MODEL_LOADING, details={'model': Config.CLASSIFIER_MODEL})
    try:
        model_cache.get_classifier(
            progress_callback=lambda pct: tracker.update_stage_progress(
                ProcessingStage.MODEL_LOADING, percentage=pct
            )
        )
    except NarratorError:
        tracker.complete_stage(ProcessingStage.MODEL_LOADING, success=False)
        raise
    tracker.complete_stage(ProcessingStage.MODEL_LOADING)

    min_confidence = args.threshold / 100 if args.threshold is not None else None
    min_margin = args.margin / 100 if args.margin is not None else identifier.policy.min_margin

    tracker.start_stage(ProcessingStage.CLASSIFICATION)
    try:
        matches = identifier.identify(image, top_n=args.top, min_confidence=min_confidence,
                                      min_margin=min_margin)
    except NoConfidentMatch as e:
        tracker.complete_stage(ProcessingStage.CLASSIFICATION, details={'matches': 0})
        if args.json:
            print(json.dumps({
                'error': 'No component identified',
                'topScores': [m.to_dict() for m in e.near_misses]
            }, indent=2))
        else:
            print(f"\n{e.processing_error.message}")
            if e.near_misses:
                print("Closest matches:")
                for miss in e.near_misses:
                    print(f"   {miss.component.name:<22} {miss.confidence}%")
        return 0
    except NarratorError:
        tracker.complete_stage(ProcessingStage.CLASSIFICATION, success=False)
        raise
    tracker.complete_stage(ProcessingStage.CLASSIFICATION, details={'matches': len(matches)})

    if args.json:
        if args.top > 1:
            data = [m.to_dict() for m in matches]
        else:
            best = matches[0]
            data = dict(best.to_dict(), description=best.component.description,
                        specs=best.component.to_dict()['specs'])
        print(json.dumps(data, indent=2))
        return 0

    print()
    if args.top > 1:
        print(f"Top {len(matches)} matches:\n")
        for i, match in enumerate(matches):
            marker = "->" if i == 0 else "  "
            print(f"{marker} {match.component.name:<22} {match.confidence}% confidence")
        print()
        return 0

    best = matches[0]
    component = best.component
    print(f"Identified: {component.name} ({best.confidence}% confidence)\n")
    print(f"  Category:    {component.category.value}")
    print(f"  Description: {component.description}")
    if component.circuit_example:
        print(f"  Circuit:     {component.circuit_example}")
    print()
    print(f"  Run `circuit-narrator info {component.id}` for full details.")
    print(f"  Run `circuit-narrator speak {component.id}` to generate a voice description.")
    print()
    return 0


def cmd_speak(args, catalog: ComponentCatalog, model_cache: ModelCache) -> int:
    component = catalog.get(args.component_id)
    text = args.text if args.text is not None else component.voice_description
    output_path = Path(args.output) if args.output else Path(f"{component.id}.wav")

    tracker = ProgressTracker()
    tracker.start_pipeline(f"narration for {component.name}")

    tracker.start_stage(ProcessingStage.SEGMENTATION)
    sentences = segment(text)
    tracker.complete_stage(ProcessingStage.SEGMENTATION, details={'sentences': len(sentences)})

    tracker.start_stage(ProcessingStage.MODEL_LOADING, details={'model': Config.TTS_MODEL})
    try:
        model_cache.get_synthesizer(
            progress_callback=lambda pct: tracker.update_stage_progress(
                ProcessingStage.MODEL_LOADING, percentage=pct
            )
        )
    except NarratorError:
        tracker.complete_stage(ProcessingStage.MODEL_LOADING, success=False)
        tracker.complete_pipeline(success=False)
        raise
    tracker.complete_stage(ProcessingStage.MODEL_LOADING)

    synthesizer = SpeechSynthesizer(model_cache)
    tracker.start_stage(ProcessingStage.SYNTHESIS, total_items=len(sentences))
    try:
        result = synthesizer.synthesize(
            text,
            on_sentence=lambda index, total: tracker.update_stage_progress(
                ProcessingStage.SYNTHESIS, completed_items=index - 1,
                current_item=f"Sentence {index}/{total}"
            )
        )
    except NarratorError:
        tracker.complete_stage(ProcessingStage.SYNTHESIS, success=False)
        tracker.complete_pipeline(success=False)
        raise
    tracker.complete_stage(ProcessingStage.SYNTHESIS)

    tracker.start_stage(ProcessingStage.ENCODING)
    path = save_wav(output_path, result.waveform.samples, result.sample_rate)
    tracker.complete_stage(ProcessingStage.ENCODING, details={'path': str(path)})

    tracker.update_summary_data(sentences=len(result.sentences), audio_seconds=result.duration_seconds)
    tracker.complete_pipeline(success=True)

    print(f"\nSaved: {path.resolve()} (16-bit PCM, {result.sample_rate} Hz, "
          f"{result.duration_seconds:.1f}s audio)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="circuit-narrator",
        description="Identify electronic components from photos and generate voice descriptions "
                    "using local AI models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list --category passive
  %(prog)s info resistor
  %(prog)s identify photo.jpg --top 3
  %(prog)s speak led -o led.wav
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List all available electronic components")
    list_parser.add_argument("-c", "--category", help="Filter by category: passive, active, input, output")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    info_parser = subparsers.add_parser("info", help="Show detailed information for a component")
    info_parser.add_argument("component_id", help="Component ID (e.g., resistor, led, capacitor)")
    info_parser.add_argument("--json", action="store_true", help="Output as JSON")

    identify_parser = subparsers.add_parser("identify", help="Identify an electronic component from a photo")
    identify_parser.add_argument("image", help="Path to an image file (JPEG, PNG, WebP, BMP, TIFF)")
    identify_parser.add_argument("--json", action="store_true", help="Output as JSON")
    identify_parser.add_argument("--top", type=int, default=Config.DEFAULT_TOP_N, help="Show top N matches")
    identify_parser.add_argument("--threshold", type=float, default=None,
                                 help=f"Minimum confidence percentage (default: {Config.MIN_CONFIDENCE * 100:g})")
    identify_parser.add_argument("--margin", type=float, default=None,
                                 help="Minimum lead over the runner-up, in percentage points")

    speak_parser = subparsers.add_parser("speak", help="Generate a WAV file of a component's voice description")
    speak_parser.add_argument("component_id", help="Component ID (e.g., resistor, led, capacitor)")
    speak_parser.add_argument("-o", "--output", help="Output WAV file path (default: ./<component-id>.wav)")
    speak_parser.add_argument("-t", "--text", help="Custom text to speak instead of the component description")

    return parser


def main(argv: Optional[List[str]] = None, model_cache: Optional[ModelCache] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, quiet=getattr(args, 'json', False))
    logger = logging.getLogger(__name__)

    catalog = ComponentCatalog()
    error_handler.clear_errors()

    try:
        if args.command == "list":
            return cmd_list(args, catalog)
        if args.command == "info":
            return cmd_info(args, catalog)

        if model_cache is None:
            model_cache = ModelCache()
        if args.command == "identify":
            return cmd_identify(args, catalog, model_cache)
        return cmd_speak(args, catalog, model_cache)
    except NarratorError as e:
        logger.debug(f"{args.command} failed: {e.error_code}")
        report_error(e)
        return 1
    except KeyboardInterrupt:
        print("\n❌ Cancelled by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
