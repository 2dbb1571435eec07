"""Simulate command for phylosim CLI."""

from pathlib import Path
from typing import List, Optional, Tuple

import typer

from ...io.edm import read_edm
from ...io.trees import Tree
from ...models import gamma
from ...models.parse import parse_mixture_model, parse_substitution_model
from ...simulate.markov import MarkovProcessSimulator
from ...simulate.output import SimulationOutput


def parse_floats(text: str, what: str) -> List[float]:
    """Parse a comma separated list of floats."""
    try:
        return [float(x) for x in text.split(',') if x.strip()]
    except ValueError:
        raise typer.BadParameter(f"Could not parse {what}: '{text}'")


def parse_seed(text: str) -> List[int]:
    """Parse a comma separated list of unsigned 32 bit integers."""
    try:
        seed = [int(x) for x in text.split(',') if x.strip()]
    except ValueError:
        raise typer.BadParameter(f"Seed must be a list of integers, got '{text}'")
    if not seed:
        raise typer.BadParameter("Seed must not be empty")
    return seed


def parse_gamma(text: str) -> Tuple[int, float]:
    """Parse 'NCAT,SHAPE'."""
    parts = [x.strip() for x in text.split(',')]
    try:
        n, alpha = int(parts[0]), float(parts[1])
    except (ValueError, IndexError):
        raise typer.BadParameter(f"Gamma parameters must be NCAT,SHAPE, got '{text}'")
    if len(parts) != 2:
        raise typer.BadParameter(f"Gamma parameters must be NCAT,SHAPE, got '{text}'")
    return n, alpha


def _fail(message: str):
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def run_simulate(
    tree: Path,
    output: Path,
    length: int,
    substitution_model: Optional[str] = None,
    mixture_model: Optional[str] = None,
    edm_file: Optional[Path] = None,
    weights: Optional[str] = None,
    gamma_params: Optional[str] = None,
    seed: Optional[str] = None,
    workers: Optional[int] = None,
    replicates: int = 1,
    output_params: bool = True,
    output_site_classes: bool = False,
    quiet: bool = False,
):
    """Simulate alignments and write them to FASTA files."""
    if (substitution_model is None) == (mixture_model is None):
        _fail("Specify exactly one of --substitution-model and --mixture-model")
    if weights is not None and mixture_model is None:
        _fail("--weights can only be used with --mixture-model")
    if edm_file is not None and mixture_model is None:
        _fail("--edm-file can only be used with --mixture-model")

    seed_list = parse_seed(seed) if seed is not None else None
    weight_list = parse_floats(weights, "weights") if weights is not None else None
    gamma_ncat_shape = parse_gamma(gamma_params) if gamma_params is not None else None

    if not quiet:
        typer.echo("phylosim Sequence Simulator")
        typer.echo("=" * 50)
        typer.echo(f"Loading tree from {tree}...")

    try:
        tree_obj = Tree.from_file(tree)
    except ValueError as e:
        _fail(f"Could not read tree: {e}")

    edm = None
    if edm_file is not None:
        try:
            edm = read_edm(edm_file)
        except (OSError, ValueError) as e:
            _fail(f"Could not read EDM file: {e}")
        if not quiet:
            typer.echo(f"Read {len(edm)} EDM profiles from {edm_file}.")

    try:
        if substitution_model is not None:
            model = parse_substitution_model(substitution_model)
        else:
            model = parse_mixture_model(mixture_model, weight_list, edm)
        if gamma_ncat_shape is not None:
            n, alpha = gamma_ncat_shape
            model = gamma.expand(n, alpha, model)

        simulator = MarkovProcessSimulator(
            tree=tree_obj,
            model=model,
            sequence_length=length,
            seed=seed_list,
            n_workers=workers,
        )
    except ValueError as e:
        _fail(f"Error creating simulator: {e}")

    if not quiet:
        typer.echo("")
        for line in tree_obj.summarize():
            typer.echo(line)
        typer.echo("")
        for line in simulator.summarize():
            typer.echo(line)
        if gamma_ncat_shape is not None:
            typer.echo("")
            for line in gamma.summarize(*gamma_ncat_shape):
                typer.echo(line)
        typer.echo("")
        typer.echo("Simulation parameters:")
        typer.echo(f"  Sequence length: {length}")
        typer.echo(f"  Replicates: {replicates}")
        typer.echo(f"  Workers: {simulator.n_workers}")

    # Reported even when quiet, so that random runs can be reproduced
    seed_source = "given" if seed_list is not None else "random"
    typer.echo(f"Seed ({seed_source}): {','.join(str(s) for s in simulator.seed)}")

    if not quiet:
        typer.echo(f"\nSimulating {replicates} replicate(s)...")

    for rep in range(replicates):
        try:
            alignment = simulator.simulate()
        except Exception as e:
            _fail(f"Error simulating replicate {rep+1}: {e}")

        if replicates == 1:
            out_path = output
        else:
            out_path = output.parent / f"{output.stem}_rep{rep+1}{output.suffix}"

        try:
            SimulationOutput.write_fasta(
                alignment, out_path, replicate_id=rep+1 if replicates > 1 else None
            )
            if output_site_classes:
                site_info = simulator.get_site_classes()
                SimulationOutput.write_site_classes(
                    site_info['site_class_ids'],
                    site_info['component_names'],
                    out_path.parent / f"{out_path.stem}.site_classes.txt",
                )
        except OSError as e:
            _fail(f"Error writing output: {e}")

        if not quiet:
            typer.echo(f"  Replicate {rep+1} -> {out_path}")

    if output_params:
        params_path = output.parent / f"{output.stem}.params.json"
        params = simulator.get_parameters()
        params['replicates'] = replicates
        if gamma_ncat_shape is not None:
            params['gamma'] = {
                'n_categories': gamma_ncat_shape[0],
                'shape': gamma_ncat_shape[1],
            }
        try:
            SimulationOutput.write_parameters(params, params_path)
        except OSError as e:
            typer.echo(f"Warning: Could not write parameters: {e}", err=True)
        else:
            if not quiet:
                typer.echo(f"\nParameters -> {params_path}")

    if not quiet:
        typer.echo("\nSimulation complete!")


def run_rates(n_categories: int, shape: float):
    """Print the mean rates of discrete gamma rate categories."""
    try:
        lines = gamma.summarize(n_categories, shape)
    except ValueError as e:
        _fail(str(e))
    for line in lines:
        typer.echo(line)
