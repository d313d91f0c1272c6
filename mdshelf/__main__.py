from mdshelf.app import main

raise SystemExit(main())
