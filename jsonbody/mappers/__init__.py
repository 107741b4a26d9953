#!/usr/bin/env python
# -*- coding: utf-8 -*-

from ..mapper import JsonMapper

__all__ = ['JsonMapper']
