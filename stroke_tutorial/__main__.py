# -*- coding: utf-8 -*-
from .main import main

main()
