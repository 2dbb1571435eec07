"""
Alphabets and multiple sequence alignments.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

import numpy as np


# Characters per line in FASTA output
FASTA_LINE_WIDTH = 60


@dataclass(frozen=True)
class Alphabet:
    """
    A closed set of characters with a fixed character-to-index mapping.

    Attributes
    ----------
    name : str
        Alphabet name ('DNA', 'Protein', ...)
    characters : str
        Characters in index order
    standard : bool
        Whether the alphabet only contains fully resolved states. Only
        standard alphabets can be used with substitution models.
    """

    name: str
    characters: str
    standard: bool = True
    _index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, '_index', {c: i for i, c in enumerate(self.characters)}
        )

    @property
    def size(self) -> int:
        """Number of states."""
        return len(self.characters)

    def index(self, char: str) -> int:
        """Index of a character (case-insensitive)."""
        try:
            return self._index[char.upper()]
        except KeyError:
            raise ValueError(f"Character '{char}' not in {self.name} alphabet")

    def encode(self, sequence: str) -> np.ndarray:
        """Encode a character string as an array of state indices."""
        return np.array([self.index(c) for c in sequence], dtype=np.int16)

    def decode(self, indices: Iterable[int]) -> str:
        """Decode state indices into a character string."""
        return ''.join(self.characters[int(i)] for i in indices)

    def __str__(self) -> str:
        return self.name


DNA = Alphabet('DNA', 'ACGT')
PROTEIN = Alphabet('Protein', 'ACDEFGHIKLMNPQRSTVWY')

# IUPAC nucleotide codes, gaps and unknowns; for reading data only
DNA_IUPAC = Alphabet('DNA_IUPAC', 'ACGTUWSMKRYBDHVN-', standard=False)
PROTEIN_IUPAC = Alphabet('Protein_IUPAC', 'ACDEFGHIKLMNPQRSTVWYBJZX*-', standard=False)

ALPHABETS = {a.name.lower(): a for a in (DNA, PROTEIN, DNA_IUPAC, PROTEIN_IUPAC)}


def get_alphabet(name: str) -> Alphabet:
    """Look up an alphabet by name ('dna', 'protein', 'dna_iupac', ...)."""
    try:
        return ALPHABETS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown alphabet: {name}. Available: {', '.join(sorted(ALPHABETS))}"
        )


@dataclass
class Alignment:
    """
    Multiple sequence alignment.

    Attributes
    ----------
    names : list[str]
        Sequence names/labels
    sequences : ndarray, shape (n_species, n_sites)
        Encoded sequences as integer state indices
    alphabet : Alphabet
        Alphabet the indices refer to
    """

    names: List[str]
    sequences: np.ndarray
    alphabet: Alphabet

    def __post_init__(self):
        self.sequences = np.atleast_2d(np.asarray(self.sequences))
        if self.sequences.shape[0] != len(self.names):
            raise ValueError(
                f"Got {len(self.names)} names but {self.sequences.shape[0]} sequences"
            )
        if len(set(self.names)) != len(self.names):
            raise ValueError("Sequence names must be unique")

    @property
    def n_species(self) -> int:
        """Number of sequences."""
        return self.sequences.shape[0]

    @property
    def n_sites(self) -> int:
        """Number of sites (alignment length)."""
        return self.sequences.shape[1]

    @classmethod
    def from_sequences(cls, sequences: Dict[str, np.ndarray], alphabet: Alphabet) -> "Alignment":
        """
        Build an alignment from a mapping of name to state indices.

        Raises
        ------
        ValueError
            If the mapping is empty or sequences differ in length
        """
        if not sequences:
            raise ValueError("No sequences given")
        lengths = {len(seq) for seq in sequences.values()}
        if len(lengths) > 1:
            raise ValueError(f"Sequences have different lengths: {lengths}")

        names = list(sequences)
        return cls(
            names=names,
            sequences=np.vstack([np.asarray(sequences[n]) for n in names]),
            alphabet=alphabet,
        )

    @classmethod
    def from_fasta(cls, filepath: Path | str, alphabet: Alphabet = DNA) -> "Alignment":
        """
        Parse FASTA format alignment file.

        Parameters
        ----------
        filepath : Path or str
            Path to FASTA format file
        alphabet : Alphabet
            Alphabet of the sequences

        Returns
        -------
        Alignment
            Parsed alignment

        Examples
        --------
        >>> aln = Alignment.from_fasta("alignment.fasta", alphabet=DNA)
        """
        filepath = Path(filepath)

        names = []
        sequences_raw = []

        with open(filepath, 'r') as f:
            current_name = None
            current_seq = []

            for line in f:
                line = line.strip()

                if not line:
                    continue

                if line.startswith('>'):
                    if current_name is not None:
                        names.append(current_name)
                        sequences_raw.append(''.join(current_seq))

                    current_name = line[1:].split()[0] if line[1:].strip() else ''
                    current_seq = []
                else:
                    current_seq.append(line.upper())

            if current_name is not None:
                names.append(current_name)
                sequences_raw.append(''.join(current_seq))

        if not names:
            raise ValueError("No sequences found in FASTA file")

        sequences_clean = [re.sub(r'\s', '', seq) for seq in sequences_raw]

        seq_lengths = {len(seq) for seq in sequences_clean}
        if len(seq_lengths) > 1:
            raise ValueError(f"Sequences have different lengths: {seq_lengths}")

        return cls(
            names=names,
            sequences=np.vstack([alphabet.encode(seq) for seq in sequences_clean]),
            alphabet=alphabet,
        )

    def to_dict(self) -> Dict[str, np.ndarray]:
        """Mapping from sequence name to state indices, in alignment order."""
        return {name: row for name, row in zip(self.names, self.sequences)}

    def join(self, other: "Alignment") -> "Alignment":
        """
        Join two alignments vertically, i.e. add the sequences of `other`
        below the sequences of this alignment.

        Raises
        ------
        ValueError
            If lengths or alphabets differ
        """
        if self.n_sites != other.n_sites or self.alphabet != other.alphabet:
            raise ValueError(
                "Cannot join alignments: lengths or alphabets differ "
                f"({self.n_sites} {self.alphabet} vs {other.n_sites} {other.alphabet})"
            )
        return Alignment(
            names=self.names + other.names,
            sequences=np.vstack([self.sequences, other.sequences]),
            alphabet=self.alphabet,
        )

    def concatenate(self, other: "Alignment") -> "Alignment":
        """
        Concatenate two alignments horizontally, i.e. add the sites of
        `other` to the right of this alignment. Sequences are paired by
        position; names of this alignment are kept.

        Raises
        ------
        ValueError
            If the number of sequences or alphabets differ
        """
        if self.n_species != other.n_species or self.alphabet != other.alphabet:
            raise ValueError(
                "Cannot concatenate alignments: number of sequences or alphabets differ "
                f"({self.n_species} {self.alphabet} vs {other.n_species} {other.alphabet})"
            )
        return Alignment(
            names=list(self.names),
            sequences=np.hstack([self.sequences, other.sequences]),
            alphabet=self.alphabet,
        )

    @staticmethod
    def concatenate_all(alignments: List["Alignment"]) -> "Alignment":
        """Concatenate a list of alignments horizontally."""
        if not alignments:
            raise ValueError("Nothing to concatenate")
        result = alignments[0]
        for aln in alignments[1:]:
            result = result.concatenate(aln)
        return result

    def frequencies(self) -> np.ndarray:
        """
        Per-column character frequencies.

        Returns
        -------
        ndarray, shape (alphabet.size, n_sites)
            Column j holds the relative frequency of each state at site j
        """
        k = self.alphabet.size
        counts = np.zeros((k, self.n_sites))
        for state in range(k):
            counts[state] = np.sum(self.sequences == state, axis=0)
        return counts / self.n_species

    def k_eff(self) -> np.ndarray:
        """
        Effective number of states per site, exp of the column entropy.

        Returns
        -------
        ndarray, shape (n_sites,)
            Values between 1 (invariant column) and alphabet.size
        """
        freqs = self.frequencies()
        with np.errstate(divide='ignore', invalid='ignore'):
            terms = np.where(freqs > 0, freqs * np.log(freqs), 0.0)
        return np.exp(-terms.sum(axis=0))

    def to_fasta(self, filepath: Path | str, line_width: int = FASTA_LINE_WIDTH) -> None:
        """
        Write alignment to FASTA format file.

        Parameters
        ----------
        filepath : Path or str
            Output file path
        line_width : int
            Characters per sequence line
        """
        filepath = Path(filepath)

        with open(filepath, 'w') as f:
            f.write(self.format_fasta(line_width))

    def format_fasta(self, line_width: int = FASTA_LINE_WIDTH) -> str:
        """Render the alignment as FASTA text."""
        lines = []
        for name, encoded_seq in zip(self.names, self.sequences):
            lines.append(f">{name}")
            seq = self.alphabet.decode(encoded_seq)
            for i in range(0, len(seq), line_width):
                lines.append(seq[i:i+line_width])
        return '\n'.join(lines) + '\n'

    def summarize(self) -> List[str]:
        """Summary lines for screen output."""
        return [
            "Multi sequence alignment.",
            f"Code: {self.alphabet.name}.",
            f"Length: {self.n_sites}.",
            f"Number of sequences: {self.n_species}.",
        ]

    def __repr__(self) -> str:
        return (
            f"Alignment(n_species={self.n_species}, n_sites={self.n_sites}, "
            f"alphabet='{self.alphabet.name}')"
        )
