import os
import sys

# Add the project root directory to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from superpixel_batch.cli import main


if __name__ == "__main__":
    sys.exit(main())
