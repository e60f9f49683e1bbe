from dep.modules.cli import main

raise SystemExit(main())
