"""Main CLI application for phylosim."""

import typer
from pathlib import Path
from typing import Optional

app = typer.Typer(
    name="phylosim",
    help="Simulate multiple sequence alignments along phylogenetic trees",
    no_args_is_help=True,
)


@app.command(name="simulate")
def simulate(
    tree: Path = typer.Option(
        ...,
        "--tree", "-t",
        help="Tree file (Newick format with branch lengths)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output", "-o",
        help="Output FASTA file",
    ),
    length: int = typer.Option(
        ...,
        "--length", "-l",
        help="Sequence length (number of sites)",
        min=1,
    ),
    substitution_model: Optional[str] = typer.Option(
        None,
        "--substitution-model", "-s",
        help="Substitution model, e.g. 'JC', 'HKY[2.5]' or 'F81{0.3,0.2,0.2,0.3}'",
    ),
    mixture_model: Optional[str] = typer.Option(
        None,
        "--mixture-model", "-m",
        help="Mixture of substitution models, e.g. 'MIXTURE(JC,HKY[2.0])' or 'EDM(LG-Custom)'",
    ),
    edm_file: Optional[Path] = typer.Option(
        None,
        "--edm-file", "-e",
        help="Empirical distribution model file in Phylobayes format, used with 'EDM(...)'",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    weights: Optional[str] = typer.Option(
        None,
        "--weights", "-w",
        help="Comma separated relative weights of the mixture components (optional for EDM models)",
    ),
    gamma: Optional[str] = typer.Option(
        None,
        "--gamma", "-g",
        help="Discrete gamma rate heterogeneity as NCAT,SHAPE, e.g. '4,0.5'",
    ),
    seed: Optional[str] = typer.Option(
        None,
        "--seed",
        help="Comma separated 32 bit integers seeding the generator",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers", "-j",
        help="Number of parallel chunks (default: number of CPU cores)",
        min=1,
    ),
    replicates: int = typer.Option(
        1,
        "--replicates", "-r",
        help="Number of replicate alignments",
        min=1,
    ),
    output_params: bool = typer.Option(
        True,
        "--output-params/--no-output-params",
        help="Write simulation parameters to <output>.params.json",
    ),
    output_site_classes: bool = typer.Option(
        False,
        "--output-site-classes",
        help="Write the mixture component of each site",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Minimal output",
    ),
):
    """
    Simulate alignments under a substitution or mixture model.

    Example:
        phylosim simulate -t tree.nwk -o sim.fasta -l 1000 -s 'HKY[2.5]' -g 4,0.5
    """
    from .commands.simulate import run_simulate

    run_simulate(
        tree=tree,
        output=output,
        length=length,
        substitution_model=substitution_model,
        mixture_model=mixture_model,
        edm_file=edm_file,
        weights=weights,
        gamma_params=gamma,
        seed=seed,
        workers=workers,
        replicates=replicates,
        output_params=output_params,
        output_site_classes=output_site_classes,
        quiet=quiet,
    )


@app.command(name="rates")
def rates(
    categories: int = typer.Option(
        4,
        "--categories", "-n",
        help="Number of rate categories",
        min=1,
    ),
    shape: float = typer.Option(
        ...,
        "--shape", "-a",
        help="Shape parameter of the gamma distribution",
    ),
):
    """
    Print the mean rates of discrete gamma rate categories.

    Example:
        phylosim rates -n 4 -a 0.5
    """
    from .commands.simulate import run_rates

    run_rates(categories, shape)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
