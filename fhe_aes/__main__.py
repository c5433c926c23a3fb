from fhe_aes.cli import main

raise SystemExit(main())
