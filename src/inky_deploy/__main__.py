"""Allow `python -m inky_deploy`"""
from inky_deploy import main

if __name__ == '__main__':
    main()
