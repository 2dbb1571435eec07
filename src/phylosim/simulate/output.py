"""
Output formatting for simulated sequences.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from ..io.sequences import FASTA_LINE_WIDTH, Alignment


class SimulationOutput:
    """
    Handle output formatting for simulated sequences.

    Provides methods to write:
    - Sequences in FASTA format
    - Parameters in JSON format
    - Component (site class) assignments for mixture models
    """

    @staticmethod
    def write_fasta(
        alignment: Alignment,
        output_path: Path,
        replicate_id: Optional[int] = None,
        line_width: int = FASTA_LINE_WIDTH,
    ):
        """
        Write sequences to FASTA format.

        Parameters
        ----------
        alignment : Alignment
            Simulated alignment
        output_path : Path
            Output file path
        replicate_id : int, optional
            Replicate number (added to header if provided)
        line_width : int
            Number of characters per line (default 60)
        """
        output_path = Path(output_path)

        with open(output_path, 'w') as f:
            for name, seq_indices in zip(alignment.names, alignment.sequences):
                header = f">{name}"
                if replicate_id is not None:
                    header += f" replicate={replicate_id}"
                f.write(header + '\n')

                seq = alignment.alphabet.decode(seq_indices)
                for i in range(0, len(seq), line_width):
                    f.write(seq[i:i+line_width] + '\n')

    @staticmethod
    def write_parameters(
        params: Dict,
        output_path: Path,
        indent: int = 2
    ):
        """
        Write simulation parameters to JSON file.

        Parameters
        ----------
        params : dict
            Simulation parameters
        output_path : Path
            Output file path
        indent : int
            JSON indentation level
        """
        output_path = Path(output_path)

        with open(output_path, 'w') as f:
            json.dump(params, f, indent=indent)

    @staticmethod
    def write_site_classes(
        site_class_ids: np.ndarray,
        component_names: List[str],
        output_path: Path
    ):
        """
        Write the mixture component of every site.

        Output Format
        -------------
        site_id  class_id  component
        1        0         HKY; gamma rate category 1
        2        3         HKY; gamma rate category 4
        ...
        """
        output_path = Path(output_path)

        with open(output_path, 'w') as f:
            f.write("# Mixture model component of each site\n")
            f.write("site_id\tclass_id\tcomponent\n")

            for site_idx, class_id in enumerate(site_class_ids):
                f.write(f"{site_idx+1}\t{class_id}\t{component_names[int(class_id)]}\n")
