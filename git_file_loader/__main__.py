"""Run the git-file-loader command line tool."""

from .tool.git_file_loader import main

if __name__ == "__main__":
    main()
