"""
Artifact JSON file loading using a streaming parser.
"""

import ijson

from ..core.types import Artifacts


class ArtifactFileProcessor:
    """Reads a captured page-load artifact file with ijson, one section at a time."""

    @staticmethod
    def process_file(file_path: str) -> Artifacts:
        """
        Load requests, trace events, frames and iframe elements.

        The file is one JSON object::

            {"requests": [...], "traceEvents": [...],
             "frames": {"<child frame>": "<creating request id>"},
             "iframeElements": [...]}

        Missing sections load as empty.

        Args:
            file_path: Path to the artifact JSON file

        Returns:
            Artifacts
        """
        print(f"Processing {file_path}...")

        with open(file_path, 'rb') as f:
            requests = list(ijson.items(f, 'requests.item', use_float=True))
        print(f"  Read {len(requests)} network requests")

        trace_events = []
        with open(file_path, 'rb') as f:
            for event in ijson.items(f, 'traceEvents.item', use_float=True):
                trace_events.append(event)
                if len(trace_events) % 50000 == 0:
                    print(f"  Read {len(trace_events)} trace events...")
        print(f"  Read {len(trace_events)} trace events")

        with open(file_path, 'rb') as f:
            frames = dict(ijson.kvitems(f, 'frames', use_float=True))

        with open(file_path, 'rb') as f:
            iframe_elements = list(ijson.items(f, 'iframeElements.item', use_float=True))

        print(f"Completed reading file: {len(frames)} frames, {len(iframe_elements)} iframe elements.")

        return Artifacts(
            requests=requests,
            trace_events=trace_events,
            frame_hierarchy=frames,
            iframe_elements=iframe_elements,
        )
