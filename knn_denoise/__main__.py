import sys

from knn_denoise.main import main

sys.exit(main())
