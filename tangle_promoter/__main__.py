from tangle_promoter.cli import main

main()
