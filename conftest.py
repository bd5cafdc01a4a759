import pytest

SAMPLE_CAMPAIGN = """---
title: Test Campaign
genre: Fantasy
---
# Test Campaign

## Session 1
*Date: 2025-01-01 | Duration: 2h*

### S1 *Forest edge*
```
> I approach the camp and greet [N:Grim|friendly]
? Is the ritual already underway?
-> Yes (d6=5)
[Clock:Forest Ritual 3/6]
```

### S2 *Into the woods*
```
d: 2d10 => Strong hit
=> The cultists scatter, [Clock:Forest Ritual|4/6]
(note: check the ritual rules)
```
"""


@pytest.fixture
def sample_campaign() -> str:
    return SAMPLE_CAMPAIGN
