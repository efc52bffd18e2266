from calci.app import main

raise SystemExit(main())
