from deb2ipa.cli import main

raise SystemExit(main())
