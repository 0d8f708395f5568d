import sys

from .pki_service.main import main

sys.exit(main())
