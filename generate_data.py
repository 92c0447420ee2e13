"""
Dense Matrix Data Generator
Generates random integer matrices in the row=R col=C text format.

Features:
- Control matrix size and value range
- Memory estimation before generation
- Compatible A/B pairs in one call
- Progress tracking for large files
- Safe generation (won't crash your computer)
"""

import numpy as np
import argparse
import logging
from pathlib import Path
from typing import Tuple, Optional
from tqdm import tqdm

from matmul_config import INT32_MIN, INT32_MAX


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)


class DenseMatrixGenerator:
    """Generate random dense integer matrices for the multiplication tool."""

    def __init__(self, output_dir: str = "data/input"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def estimate_memory(self, num_rows: int, num_cols: int) -> dict:
        """
        Estimate memory requirements for generating and storing the matrix.

        Args:
            num_rows: Number of rows
            num_cols: Number of columns

        Returns:
            Dictionary with memory estimates in MB
        """
        cells = num_rows * num_cols

        # int64 while sampling
        memory_generation_mb = (cells * 8) / (1024 * 1024)

        # Text size: up to 11 characters plus a separator per element
        text_size_mb = (cells * 12) / (1024 * 1024)

        return {
            'generation_mb': memory_generation_mb,
            'text_size_mb': text_size_mb,
            'total_mb': memory_generation_mb + text_size_mb
        }

    def check_safety(self, num_rows: int, num_cols: int, max_memory_mb: float = 500):
        """
        Check if generation is safe (won't crash computer).

        Raises:
            ValueError if unsafe
        """
        estimates = self.estimate_memory(num_rows, num_cols)

        if estimates['total_mb'] > max_memory_mb:
            raise ValueError(
                f"Matrix too large! Estimated memory: {estimates['total_mb']:.1f} MB\n"
                f"Maximum allowed: {max_memory_mb} MB"
            )

        logger.info(f"Memory estimate: {estimates['total_mb']:.1f} MB (SAFE)")

    def generate_random(
        self,
        num_rows: int,
        num_cols: int,
        filename: str,
        low: int = -100,
        high: int = 100,
        seed: Optional[int] = None,
        max_memory_mb: float = 500
    ) -> str:
        """
        Generate a random matrix with uniformly distributed integers.

        Args:
            num_rows: Number of rows
            num_cols: Number of columns
            filename: Output filename (inside output_dir)
            low, high: Value range, inclusive
            seed: Random seed for reproducibility
            max_memory_mb: Safety limit

        Returns:
            Path to generated file
        """
        if low > high:
            raise ValueError(f"low ({low}) must not exceed high ({high})")
        if low < INT32_MIN or high > INT32_MAX:
            raise ValueError(f"Value range must fit in int32: [{INT32_MIN}, {INT32_MAX}]")

        logger.info(f"Generating random matrix: {num_rows}×{num_cols}, values in [{low}, {high}]")

        self.check_safety(num_rows, num_cols, max_memory_mb)

        rng = np.random.default_rng(seed)
        values = rng.integers(low, high, size=(num_rows, num_cols), endpoint=True)

        filepath = self.output_dir / filename

        logger.info(f"Writing to {filepath}...")
        with open(filepath, 'w') as f:
            f.write(f"row={num_rows} col={num_cols}\n")
            for row in tqdm(values, desc="Writing rows", unit=" rows", disable=num_rows < 1000):
                f.write(" ".join(str(v) for v in row) + "\n")

        file_size_mb = filepath.stat().st_size / (1024 * 1024)
        logger.info(f"✓ Generated {filepath} ({file_size_mb:.1f} MB)")

        return str(filepath)

    def generate_pair(
        self,
        m: int,
        n: int,
        p: int,
        filename_a: str = "a.txt",
        filename_b: str = "b.txt",
        low: int = -100,
        high: int = 100,
        seed: Optional[int] = None
    ) -> Tuple[str, str]:
        """
        Generate a compatible pair: A is m × n, B is n × p.

        Returns:
            (path_a, path_b)
        """
        seed_b = None if seed is None else seed + 1
        path_a = self.generate_random(m, n, filename_a, low, high, seed)
        path_b = self.generate_random(n, p, filename_b, low, high, seed_b)
        return path_a, path_b


def main():
    """Command-line interface for data generation."""
    parser = argparse.ArgumentParser(
        description="Generate random integer matrices for the multiplication tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # A (100×50) and B (50×80) as a.txt and b.txt
  python generate_data.py --pair 100 50 80 --output-dir .

  # One 200×200 matrix
  python generate_data.py --rows 200 --cols 200 -o big.txt
        """
    )

    parser.add_argument('--output-dir', default='data/input', help='Output directory')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    parser.add_argument('--max-memory', type=float, default=500, help='Max memory in MB (safety limit)')
    parser.add_argument('--low', type=int, default=-100, help='Smallest value')
    parser.add_argument('--high', type=int, default=100, help='Largest value')

    parser.add_argument('--pair', type=int, nargs=3, metavar=('M', 'N', 'P'),
                        help='Generate A (M×N) and B (N×P)')
    parser.add_argument('--rows', type=int, help='Number of rows')
    parser.add_argument('--cols', type=int, help='Number of columns')
    parser.add_argument('-o', '--output', help='Output filename')

    args = parser.parse_args()

    generator = DenseMatrixGenerator(args.output_dir)

    if args.pair:
        m, n, p = args.pair
        generator.generate_pair(m, n, p, low=args.low, high=args.high, seed=args.seed)

    elif args.rows or args.cols:
        if not all([args.rows, args.cols, args.output]):
            parser.error("--rows requires --cols and -o")

        generator.generate_random(
            num_rows=args.rows,
            num_cols=args.cols,
            filename=args.output,
            low=args.low,
            high=args.high,
            seed=args.seed,
            max_memory_mb=args.max_memory
        )

    else:
        parser.print_help()


if __name__ == "__main__":
    main()
