#!/usr/bin/env python3
import pyPatchSwf
import sys


def main():
    cli = pyPatchSwf.PyPatchSwfCLI()
    return cli.run(sys.argv[1:])


if __name__ == '__main__':
    sys.exit(main())
