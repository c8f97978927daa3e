# __main__.py
import uvicorn

from readability_study import config

if __name__ == "__main__":
    uvicorn.run("readability_study.main:app", host="0.0.0.0", port=config.PORT)
