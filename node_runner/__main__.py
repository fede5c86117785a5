from node_runner.main import main

raise SystemExit(main())
