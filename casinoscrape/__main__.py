from casinoscrape.cli import main

raise SystemExit(main())
